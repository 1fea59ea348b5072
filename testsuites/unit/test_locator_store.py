import json

import pytest
import yaml

from e2e_toolkit.common.errors import ErrorType, FrameworkError
from testsuites.ui_testing.framework.locator_manager import LocatorNotFoundError, LocatorStore
from testsuites.unit.doubles import FakePage, log_messages, make_store


def test_files_are_merged_and_later_file_wins(tmp_path, captured_logs):
    (tmp_path / "a_login.json").write_text(
        json.dumps({"Login": {"usernameInput": "#user", "passwordInput": "#pass"}}), encoding="utf-8"
    )
    (tmp_path / "b_overrides.yaml").write_text(
        yaml.dump({"Login": {"usernameInput": "#username"}, "Home": {"logo": "img.logo"}}), encoding="utf-8"
    )
    (tmp_path / "README.md").write_text("not a locator file", encoding="utf-8")

    store = LocatorStore(tmp_path).load()

    assert store.pages == ["Home", "Login"]
    assert store.get_selector("Login", "usernameInput") == "#username"
    assert store.get_selector("Login", "passwordInput") == "#pass"
    assert store.source_of("Login", "usernameInput") == "b_overrides.yaml"
    assert any("overridden by b_overrides.yaml" in m for m in log_messages(captured_logs, "WARNING"))


def test_malformed_files_are_skipped(tmp_path, captured_logs):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "wrong_shape.yaml").write_text(yaml.dump({"Login": ["#a", "#b"]}), encoding="utf-8")
    (tmp_path / "empty_selector.yml").write_text(yaml.dump({"Login": {"button": ""}}), encoding="utf-8")
    (tmp_path / "good.json").write_text(json.dumps({"Home": {"logo": "img.logo"}}), encoding="utf-8")

    store = LocatorStore(tmp_path).load()

    assert store.pages == ["Home"]
    errors = log_messages(captured_logs, "ERROR")
    assert any("broken.json" in m for m in errors)
    assert any("wrong_shape.yaml" in m for m in errors)
    assert any("empty_selector.yml" in m for m in errors)


def test_missing_directory_is_a_config_error(tmp_path):
    with pytest.raises(FrameworkError) as exc_info:
        LocatorStore(tmp_path / "nowhere").load()

    assert exc_info.value.error_type == ErrorType.CONFIG


def test_load_is_idempotent(tmp_path):
    store = make_store(tmp_path, {"Home": {"logo": "img.logo"}})
    (tmp_path / "later.json").write_text(json.dumps({"Later": {"x": "#x"}}), encoding="utf-8")

    store.load()

    assert "Later" not in store
    assert len(store) == 1


def test_unknown_page_and_element_raise_lookup_errors(tmp_path):
    store = make_store(tmp_path, {"Home": {"logo": "img.logo"}})

    with pytest.raises(LocatorNotFoundError) as page_error:
        store.get_selector("Checkout", "payButton")
    with pytest.raises(LocatorNotFoundError) as element_error:
        store.get_selector("Home", "payButton")

    assert page_error.value.element_name is None
    assert 'page "Checkout" not found' in str(page_error.value)
    assert str(element_error.value) == 'Locator "payButton" not found on page "Home".'
    assert isinstance(element_error.value, LookupError)


def test_tables_are_read_only(tmp_path):
    store = make_store(tmp_path, {"Home": {"logo": "img.logo"}})

    with pytest.raises(TypeError):
        store.elements("Home")["logo"] = "#other"
    assert store.has("Home", "logo")
    assert not store.has("Home", "banner")


def test_substitute_replaces_every_occurrence_and_keeps_unknown_tokens():
    selector = "tr[data-id='${rowId}'] td:has-text('${rowId}') >> text=${label}"

    result = LocatorStore.substitute(selector, {"rowId": 42})

    assert result == "tr[data-id='42'] td:has-text('42') >> text=${label}"
    assert LocatorStore.substitute(selector) == selector


def test_resolve_applies_replacements_has_text_and_nth(tmp_path):
    store = make_store(tmp_path, {"Demo": {"navItem": "nav a[data-item='${itemName}']"}})
    page = FakePage()

    locator = store.resolve(page, "Demo", "navItem", {"itemName": "docs"}, nth=2, has_text="Docs")

    assert locator.selector == "nav a[data-item='docs']"
    assert locator.has_text == "Docs"
    assert locator.index == 2
