"""
Core workflow components.

- manifest: collection manifest model and validation
- bundle: the mint orchestrator
- appendle: the append orchestrator
- ledger: durable progress ledger
- download: retrieval of tokenized private data
"""
