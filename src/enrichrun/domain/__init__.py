"""Domain layer: enrichment runs, result merging and registry promotion."""
