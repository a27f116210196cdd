"""Command-line interface for stockledger.

Usage:
    stockledger --products products.csv --sales sales.csv stats
    stockledger --products products.csv --sales sales.csv alerts
    stockledger --products products.csv --sales sales.csv reconcile <product-id>
    stockledger --products products.csv --sales sales.csv export stock.csv
    stockledger --firestore refresh
    stockledger --firestore sync --dry-run
"""
