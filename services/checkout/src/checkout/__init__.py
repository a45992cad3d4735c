"""
VoxPay checkout service.

Gates on-chain transfers behind explicit voice confirmation: classified
intents drive a per-session state machine, and only a "yes" for a
pending proposal reaches a transfer executor.
"""
