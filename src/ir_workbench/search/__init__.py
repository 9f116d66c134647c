"""
Search indexing and query engine package.

This package provides a pure-Python search stack:
- analyzers: Tokenizer and filters (lowercase, stop words, Porter/KStem stemming)
- schema: Field types and schema definitions
- index: Immutable inverted index and its builder
- query / query_parser: Structured and free-text query trees
- evaluator: Boolean matching with vector-space or BM25 ranking
- collector: Result records built from stored fields
- presets: Named analyzer + scoring combinations
"""
