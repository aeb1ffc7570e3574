"""
crowdfund.contracts.stdlib — reusable building blocks for contract modules.

Libraries only call crowdfund.stdlib (storage/events/abi) and hold no module
state; everything lives in the executing contract's storage.

- math       : U256 envelopes, checked arithmetic (safe_uint)
- token      : key layout, validators, fungible ledger core, votes, permits
- control    : scoped non-reentrancy guard
"""
