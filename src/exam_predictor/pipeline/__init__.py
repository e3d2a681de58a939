"""Generation pipeline stages: parsing, normalization, orchestration."""
