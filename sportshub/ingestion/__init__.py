"""
Ingestion Layer for the sports discovery platform.

This package turns provider output into candidate facilities and events,
checks them for duplicates, commits them as pending and moves them through
operator approval.

Key Components:
- BaseSearchPipeline: Abstract base for the facility and event searches
- IngestionOrchestrator: Caller-facing search, commit and nearby operations
- ApprovalService: pending -> approved / rejected decisions
- CanonicalStore: In-memory and PostgreSQL persistence
"""
