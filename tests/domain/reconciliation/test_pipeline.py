from __future__ import annotations

from datetime import timedelta

import pytest

from reconcilio.domain.catalog import KindRegistry
from reconcilio.domain.errors import RecordValidationError
from reconcilio.domain.model import EntityKind, EntityRecord, Identifier, RecordDraft
from reconcilio.domain.reconciliation import KeyDeriver, construct_record, validate
from tests.helpers.records import FIXED_NOW, USER_DN, USER_SID


def _construct(
    draft: RecordDraft, registry: KindRegistry, deriver: KeyDeriver
) -> EntityRecord:
    return construct_record(draft, registry=registry, deriver=deriver, now=lambda: FIXED_NOW)


def test_construction_normalizes_identity_and_derives_the_key(
    registry: KindRegistry, deriver: KeyDeriver
) -> None:
    draft = RecordDraft(
        kind="adobject",
        scope=" EXAMPLE.local ",
        subtype="ADUser",
        identifiers=[Identifier.weak(USER_DN), Identifier.strong(USER_SID.lower())],
    )

    record = _construct(draft, registry, deriver)

    assert record.kind is EntityKind.ADOBJECT
    assert record.namespace.scope == "example.local"
    assert record.namespace.subtype == "aduser"
    assert record.identifiers == [Identifier.strong(USER_SID), Identifier.weak(USER_DN)]
    assert record.key == f"#aduser#example.local#{USER_SID}"
    assert record.created == record.visited == FIXED_NOW
    assert record.ttl == 0


def test_construction_applies_kind_defaults_and_lifetime(
    registry: KindRegistry, deriver: KeyDeriver
) -> None:
    draft = RecordDraft(kind="asset", scope="example.com", identifiers=[Identifier.weak("web01")])

    record = _construct(draft, registry, deriver)

    assert record.fields["status"] == "A"
    assert record.ttl == int((FIXED_NOW + timedelta(days=7)).timestamp())


def test_defaults_never_replace_supplied_values(
    registry: KindRegistry, deriver: KeyDeriver
) -> None:
    draft = RecordDraft(
        kind="webpage",
        scope="https://example.com",
        identifiers=[Identifier.weak("https://example.com/")],
        fields={"state": "interesting"},
        ttl=0,
    )

    record = _construct(draft, registry, deriver)

    assert record.fields["state"] == "interesting"
    assert record.ttl == 0


def test_duplicate_identifiers_collapse(registry: KindRegistry, deriver: KeyDeriver) -> None:
    draft = RecordDraft(
        kind="person",
        scope="acme",
        identifiers=[Identifier.strong("ABC"), Identifier.strong(" abc "), Identifier.weak("")],
    )

    record = _construct(draft, registry, deriver)

    assert record.identifiers == [Identifier.strong("abc")]


def test_validation_collects_every_problem(registry: KindRegistry) -> None:
    draft = RecordDraft(kind="adobject", scope=" ", subtype="printer", ttl=-1)

    problems = validate(draft, registry)

    assert [problem.field for problem in problems] == ["subtype", "scope", "identifiers", "ttl"]


def test_unknown_kind_stops_validation(registry: KindRegistry, deriver: KeyDeriver) -> None:
    draft = RecordDraft(kind="spaceship", scope="x", identifiers=[Identifier.weak("y")])

    with pytest.raises(RecordValidationError) as excinfo:
        _construct(draft, registry, deriver)

    assert [problem.field for problem in excinfo.value.problems] == ["kind"]


def test_key_failure_is_a_validation_error(registry: KindRegistry) -> None:
    tiny = KeyDeriver(registry, max_length=5)
    draft = RecordDraft(kind="asset", scope="example.com", identifiers=[Identifier.weak("web01")])

    with pytest.raises(RecordValidationError, match="key"):
        _construct(draft, registry, tiny)
