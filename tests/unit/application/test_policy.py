"""Unit tests for TtlClass, PolicyTable and InvalidationRouter."""

from __future__ import annotations

import pytest

from tagcache.application.cache import (
    NOT_CACHEABLE,
    CacheTags,
    InvalidationRouter,
    InvalidationSpec,
    PolicyEntry,
    PolicyTable,
    TtlClass,
)
from tagcache.application.cache.policy import literal_prefix, template_fields
from tagcache.kernel.errors import InvalidationConfigError, PolicyConfigError


class TestTtlClass:
    def test_values(self) -> None:
        assert TtlClass.SHORT == 60_000
        assert TtlClass.DASHBOARD == 120_000
        assert TtlClass.MEDIUM == 300_000
        assert TtlClass.LONG == 1_800_000

    def test_ordering(self) -> None:
        assert TtlClass.SHORT < TtlClass.DASHBOARD < TtlClass.MEDIUM < TtlClass.LONG


# ---------------------------------------------------------------------------
# PolicyTable
# ---------------------------------------------------------------------------


class TestPolicyTable:
    def _table(self) -> PolicyTable:
        return PolicyTable(
            [
                PolicyEntry("/api/guests", TtlClass.MEDIUM, ("guests:{couple_id}",)),
                PolicyEntry("/api/guests/stats", TtlClass.SHORT, ("guests:{couple_id}",)),
                PolicyEntry("/api/auth", cacheable=False),
            ]
        )

    def test_longest_prefix_wins(self) -> None:
        table = self._table()
        assert table.lookup("/api/guests/stats").ttl_ms == TtlClass.SHORT
        assert table.lookup("/api/guests/g1").ttl_ms == TtlClass.MEDIUM
        assert table.lookup("/api/guests").ttl_ms == TtlClass.MEDIUM

    def test_query_string_is_ignored(self) -> None:
        assert self._table().lookup("/api/guests?page=2").resource_prefix == "/api/guests"

    def test_match_is_segment_aware(self) -> None:
        assert self._table().lookup("/api/guestsbook") is NOT_CACHEABLE

    def test_unconfigured_resource_is_not_cacheable(self) -> None:
        assert self._table().lookup("/api/vendors").cacheable is False

    def test_explicitly_non_cacheable(self) -> None:
        assert self._table().lookup("/api/auth/session").cacheable is False

    def test_render_tags(self) -> None:
        policy = self._table().lookup("/api/guests")
        assert policy.render_tags({"couple_id": "c1"}) == {"guests:c1"}

    def test_render_tags_missing_variable(self) -> None:
        with pytest.raises(KeyError):
            self._table().lookup("/api/guests").render_tags({})

    def test_cacheable_without_ttl_is_rejected(self) -> None:
        with pytest.raises(PolicyConfigError):
            PolicyEntry("/api/x", ttl_ms=0)

    def test_bad_template_is_rejected(self) -> None:
        with pytest.raises(PolicyConfigError):
            PolicyEntry("/api/x", ttl_ms=10, default_tags=("guests:{couple_id",))

    @pytest.mark.parametrize(
        "template", ["t:{}", "t:{0}", "t:{couple.id}", "t:{couple[id]}", "t:{couple_id!r}", "t:{couple_id:>8}"]
    )
    def test_only_plain_named_fields_are_accepted(self, template: str) -> None:
        with pytest.raises(PolicyConfigError):
            PolicyEntry("/api/x", ttl_ms=10, default_tags=(template,))

    def test_duplicate_prefix_is_rejected(self) -> None:
        with pytest.raises(PolicyConfigError):
            PolicyTable([PolicyEntry("/a", 10), PolicyEntry("/a", 20)])

    def test_from_mapping(self) -> None:
        table = PolicyTable.from_mapping(
            [
                {"resource": "/api/dashboard", "ttl": "dashboard", "tags": ["dashboard:{couple_id}"]},
                {"resource": "/api/templates", "ttl": 1_800_000},
                {"resource": "/api/auth", "cacheable": False},
            ]
        )
        assert len(table) == 3
        assert table.lookup("/api/dashboard").ttl_ms == 120_000
        assert table.lookup("/api/templates").default_tags == ()
        assert table.lookup("/api/auth").cacheable is False

    @pytest.mark.parametrize(
        "item",
        [
            {"ttl": 10},
            {"resource": "/x", "ttl": "FOREVER"},
            {"resource": "/x", "ttl": "10s"},
            {"resource": "/x", "ttl": 10, "tags": "not-a-list"},
            {"resource": "/x", "ttl": True},
        ],
    )
    def test_from_mapping_rejects_bad_items(self, item: dict) -> None:
        with pytest.raises(PolicyConfigError):
            PolicyTable.from_mapping([item])


# ---------------------------------------------------------------------------
# InvalidationRouter
# ---------------------------------------------------------------------------


class TestInvalidationRouter:
    def _router(self) -> InvalidationRouter:
        return InvalidationRouter(
            [
                InvalidationSpec("/api/guests", tags=("guests:{couple_id}",), patterns=("/api/dashboard",)),
                InvalidationSpec("/api/guests/import", tags=("couple:{couple_id}",)),
                InvalidationSpec("/api/budget", tags=("budget:{couple_id}",)),
            ]
        )

    def test_route_renders_templates(self) -> None:
        plan = self._router().route("/api/guests/g1", {"couple_id": "c1"})
        assert plan.tags == {"guests:c1"}
        assert plan.patterns == {"/api/dashboard"}

    def test_every_matching_spec_contributes(self) -> None:
        plan = self._router().route("/api/guests/import", {"couple_id": "c1"})
        assert plan.tags == {"guests:c1", "couple:c1"}

    def test_unrouted_write_has_empty_plan(self) -> None:
        assert self._router().route("/api/photos", {"couple_id": "c1"}).is_empty

    def test_missing_context_widens_tag_to_literal_prefix(self) -> None:
        plan = self._router().route("/api/budget/items/3")
        assert plan.tags == frozenset()
        assert plan.tag_prefixes == {"budget:"}
        assert not plan.is_empty

    def test_missing_context_only_widens_the_unfilled_templates(self) -> None:
        router = InvalidationRouter(
            [
                InvalidationSpec(
                    "/api/rsvp",
                    tags=("rsvp:{event_id}", "dashboard:{couple_id}"),
                    patterns=("/api/couples/{couple_id}/summary",),
                )
            ]
        )
        plan = router.route("/api/rsvp/r1", {"event_id": "e1"})
        assert plan.tags == {"rsvp:e1"}
        assert plan.tag_prefixes == {"dashboard:"}
        assert plan.patterns == {"/api/couples/"}

    @pytest.mark.parametrize("template", ["dash:{}", "dash:{couple.id}", "dash:{ids[0]}"])
    def test_only_plain_named_fields_are_accepted(self, template: str) -> None:
        with pytest.raises(InvalidationConfigError):
            InvalidationSpec("/api/x", tags=(template,))
        with pytest.raises(InvalidationConfigError):
            InvalidationSpec("/api/x", patterns=(template,))

    def test_spec_without_targets_is_rejected(self) -> None:
        with pytest.raises(InvalidationConfigError):
            InvalidationSpec("/api/x")

    def test_from_mapping(self) -> None:
        router = InvalidationRouter.from_mapping(
            [{"resource": "/api/vendors", "tags": ["vendors:{couple_id}"], "patterns": ["/api/budget"]}]
        )
        plan = router.route("/api/vendors/v9", {"couple_id": "c2"})
        assert plan.tags == {"vendors:c2"}
        assert plan.patterns == {"/api/budget"}

    @pytest.mark.parametrize(
        "item",
        [
            {"tags": ["x"]},
            {"resource": "/x"},
            {"resource": "/x", "tags": "x"},
            {"resource": "/x", "patterns": ["{unclosed"]},
        ],
    )
    def test_from_mapping_rejects_bad_items(self, item: dict) -> None:
        with pytest.raises(InvalidationConfigError):
            InvalidationRouter.from_mapping([item])


class TestCacheTags:
    def test_tag_names(self) -> None:
        assert CacheTags.couple("couple-123") == "couple:couple-123"
        assert CacheTags.user("user-456") == "user:user-456"
        assert CacheTags.guests("couple-123") == "guests:couple-123"
        assert CacheTags.budget("couple-123") == "budget:couple-123"

    def test_couple_scope(self) -> None:
        scope = CacheTags.couple_scope("c1")
        assert scope == {
            "couple:c1",
            "guests:c1",
            "budget:c1",
            "vendors:c1",
            "photos:c1",
            "checklist:c1",
            "messages:c1",
        }

    def test_user_scope(self) -> None:
        assert CacheTags.user_scope("u1") == {"user:u1", "settings:u1"}


class TestTemplates:
    @pytest.mark.parametrize(
        ("template", "prefix"),
        [
            ("dashboard:{couple_id}", "dashboard:"),
            ("{couple_id}:dashboard", ""),
            ("plain", "plain"),
            ("a{{b}}:{x}:{y}", "a{b}:"),
        ],
    )
    def test_literal_prefix(self, template: str, prefix: str) -> None:
        assert literal_prefix(template) == prefix

    def test_template_fields(self) -> None:
        assert template_fields("guests:{couple_id}:{page}") == ["couple_id", "page"]
