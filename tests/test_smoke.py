"""Public smoke tests for basic module wiring.

Keep these minimal and free of any real-world data.
"""

from __future__ import annotations


def test_imports() -> None:
    import stockledger
    import stockledger.application.stock
    import stockledger.cli.main
    import stockledger.domain
    import stockledger.importers
    import stockledger.runtime
    import stockledger.store

    assert stockledger is not None
    assert stockledger.application.stock is not None
    assert stockledger.cli.main is not None
    assert stockledger.domain is not None
    assert stockledger.importers is not None
    assert stockledger.runtime is not None
    assert stockledger.store is not None
