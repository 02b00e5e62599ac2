"""Statement ingestion: file loading and per-bank row adapters."""
