"""Data model parts; import from ``local_providers.base.models`` instead."""
