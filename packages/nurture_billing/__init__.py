"""
Nurture billing package - fixed monthly fee for active drip campaigns.

Each (campaign, UTC month) gets one claim row that arbitrates which caller
may charge the fee, so concurrent activations, sweeps and retries charge at
most once per period.
"""
