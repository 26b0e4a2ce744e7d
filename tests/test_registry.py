from __future__ import annotations

import pytest


def test_builtin_strategies_registered():
    # Import modules to trigger registration
    import sources.google_sheets  # noqa: F401
    import sources.apps_script_proxy  # noqa: F401
    from sources.registry import available_strategies, get_strategy

    names = available_strategies().keys()
    for name in ("csv_export", "csv_export_gid", "gviz_csv", "apps_script_proxy"):
        assert name in names

    strategy = get_strategy("gviz_csv")
    assert getattr(strategy, "name", None) == "gviz_csv"


def test_unknown_strategy_raises():
    from sources.registry import get_strategy
    with pytest.raises(KeyError):
        get_strategy("does_not_exist")


def test_build_ladder_preserves_order(settings):
    import sources.remote_fetcher  # noqa: F401
    from sources.registry import build_ladder

    ladder = build_ladder(["gviz_csv", "csv_export"], settings=settings)
    assert [s.name for s in ladder] == ["gviz_csv", "csv_export"]
