"""Stock reconciliation for point-of-sale catalogs."""
