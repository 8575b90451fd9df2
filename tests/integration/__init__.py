"""
Integration Tests Package

End-to-end harness: dashboard service -> httpx client -> in-memory
FastAPI event service.

TEST AXIOMS:
=============
1. Determinism: same event log = same pairings, however it is paged
2. One resolver: live timeline and compare view agree
3. Explicit failure: no silent fallbacks
"""
