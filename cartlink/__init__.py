"""Multi-retailer grocery shopping adapters with bulk-discount pricing."""
