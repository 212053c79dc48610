import pytest

from idiomlint.catalog import RuleCatalog, build_catalog, default_catalog
from idiomlint.config import EngineConfig
from idiomlint.errors import CatalogFrozenError, DuplicateRuleError
from idiomlint.rules.namespaces import USING_NAMESPACE, UsingNamespaceDetector
from idiomlint.rules.streams import FLUSHING_NEWLINE, FlushingNewlineDetector
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind


def test_default_catalog_holds_eighteen_rules_in_order():
    catalog = default_catalog()

    assert catalog.ids() == tuple(f"R{number:02d}" for number in range(1, 19))
    assert len(catalog) == 18
    assert catalog.frozen
    assert default_catalog() is catalog


def test_every_rule_matches_its_detector():
    for rule, detector in default_catalog().all():
        assert detector.rule is rule
        assert rule.node_kinds == detector.interested_in()
        assert rule.title and rule.rationale
        assert isinstance(rule.severity, Severity)


def test_duplicate_rule_id_is_rejected():
    catalog = RuleCatalog()
    catalog.register(USING_NAMESPACE, UsingNamespaceDetector())

    with pytest.raises(DuplicateRuleError) as excinfo:
        catalog.register(USING_NAMESPACE, UsingNamespaceDetector())

    assert excinfo.value.rule_id == "R01"


def test_frozen_catalog_rejects_registration():
    catalog = RuleCatalog()
    catalog.register(USING_NAMESPACE, UsingNamespaceDetector())
    catalog.freeze()

    with pytest.raises(CatalogFrozenError):
        catalog.register(FLUSHING_NEWLINE, FlushingNewlineDetector())


def test_dispatch_table_groups_by_kind_and_honours_exclusions():
    catalog = default_catalog()

    table = catalog.dispatch_table()
    variable_rules = [rule.id for rule, _ in table[NodeKind.VARIABLE_DECL]]
    assert variable_rules == ["R05", "R10", "R11"]

    filtered = catalog.dispatch_table({"R05", "R01"})
    assert [rule.id for rule, _ in filtered[NodeKind.VARIABLE_DECL]] == ["R10", "R11"]
    assert NodeKind.NAMESPACE_USING_DIRECTIVE not in filtered


def test_describe_exports_metadata():
    description = default_catalog().describe()

    first = description[0]
    assert first["id"] == "R01"
    assert first["severity"] == "WARNING"
    assert first["node_kinds"] == ["NamespaceUsingDirective"]
    assert {entry["id"] for entry in description} == set(default_catalog().ids())


def test_build_catalog_threads_configuration():
    catalog = build_catalog(EngineConfig(min_else_if_branches=7, trivial_size_threshold=4))

    _, chain_detector = catalog.get("R03")
    _, loop_detector = catalog.get("R07")
    assert chain_detector.min_branches == 7
    assert loop_detector.size_threshold == 4
    assert "R18" in catalog
