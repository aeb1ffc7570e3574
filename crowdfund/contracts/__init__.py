"""
crowdfund.contracts — contract modules deployed on a crowdfund.runtime Host.

- escrow       : Funding Escrow (phase machine, custody, refunds)
- claim_token  : Claim-Token Ledger (minter-gated supply, votes, permits)
- governor     : proposal/vote tally over past claim-token voting power
- stdlib       : shared contract libraries (math, token, control)

A contract module's `__all__` is its ABI; `init` is its constructor.
"""
