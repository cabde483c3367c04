"""
Request pipeline for grounded question answering.

Stage 1: Query Understanding   (query_understanding.py)
Stage 2: Evidence Retrieval    (evidence_retrieval.py)
Stage 3: Answer Generation     (answer_generation.py, citations.py)
Stage 4: Finalization          (finalization.py)

Orchestrated by: orchestrator.py
"""
