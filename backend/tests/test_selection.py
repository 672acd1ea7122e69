"""Tests for sparse field selection and composite pruning."""

import pytest

from accesshub.query import SelectionBuilder, SelectionPlan, prune_composites
from accesshub.query.selection import CompositePath


@pytest.fixture
def builder(metadata):
    return SelectionBuilder(metadata)


class TestBuild:
    def test_no_fields_means_default_selection(self, builder):
        plan = builder.build("User", None)
        assert plan.tree is None
        assert not plan.needs_pruning

    def test_scalars_and_relation_paths(self, builder):
        plan = builder.build("User", "userName,person.firstName,person.lastName")
        assert plan.tree == {
            "id": True,
            "userName": True,
            "person": {"select": {"firstName": True, "lastName": True}},
        }

    def test_nested_relations(self, builder):
        plan = builder.build("User", "roles.role.name")
        assert plan.tree == {
            "id": True,
            "roles": {"select": {"role": {"select": {"name": True}}}},
        }

    def test_whole_relation_wins_over_later_sub_path(self, builder):
        plan = builder.build("User", "person,person.firstName")
        assert plan.tree == {"id": True, "person": True}

    def test_whole_relation_wins_over_earlier_sub_path(self, builder):
        plan = builder.build("User", "person.contactInfo.email,person")
        assert plan.tree == {"id": True, "person": True}
        assert plan.composite_paths == []

    def test_field_order_does_not_change_the_result(self, builder):
        record = {
            "id": "u1",
            "person": {"firstName": "Ann", "contactInfo": {"email": "a@b.c", "fax": "9"}},
        }
        first = builder.build("User", "person,person.contactInfo.email")
        second = builder.build("User", "person.contactInfo.email,person")
        assert prune_composites([record], first) == prune_composites([record], second) == [record]

    def test_whole_composite_inside_relation_wins(self, builder):
        plan = builder.build("User", "person.contactInfo.email,person.contactInfo")
        assert plan.tree == {"id": True, "person": {"select": {"contactInfo": True}}}
        assert plan.composite_paths == []

    def test_malformed_tokens_are_skipped(self, builder):
        plan = builder.build("User", "userName, bad-token ,,a..b,9lives")
        assert plan.tree == {"id": True, "userName": True}

    def test_sub_path_of_a_scalar_selects_the_scalar(self, builder):
        plan = builder.build("User", "userName.first")
        assert plan.tree == {"id": True, "userName": True}

    def test_composite_sub_path_selects_whole_composite(self, builder):
        plan = builder.build("Person", "firstName,contactInfo.address.city")
        assert plan.tree == {"id": True, "firstName": True, "contactInfo": True}
        assert plan.composite_paths == [
            CompositePath(field=("contactInfo",), sub_path=("address", "city"))
        ]

    def test_composite_inside_relation(self, builder):
        plan = builder.build("User", "person.contactInfo.email")
        assert plan.tree == {"id": True, "person": {"select": {"contactInfo": True}}}
        assert plan.composite_paths == [
            CompositePath(field=("person", "contactInfo"), sub_path=("email",))
        ]

    def test_json_field_sub_path(self, builder):
        plan = builder.build("User", "metadata.authType")
        assert plan.tree == {"id": True, "metadata": True}
        assert plan.composite_paths[0].sub_path == ("authType",)

    def test_whole_composite_wins(self, builder):
        plan = builder.build("Person", "contactInfo.email,contactInfo")
        assert plan.tree == {"id": True, "contactInfo": True}
        assert plan.composite_paths == []


class TestPrune:
    def _plan(self, *paths):
        return SelectionPlan(tree={}, composite_paths=[CompositePath(f, s) for f, s in paths])

    def test_nothing_to_prune_returns_input(self):
        records = [{"id": "1"}]
        assert prune_composites(records, SelectionPlan()) is records

    def test_single_path(self):
        records = [{"id": "1", "contactInfo": {"email": "a@b.co", "fax": "1"}}]
        result = prune_composites(records, self._plan((("contactInfo",), ("email",))))
        assert result == [{"id": "1", "contactInfo": {"email": "a@b.co"}}]

    def test_paths_into_the_same_composite_are_merged(self):
        records = [
            {
                "id": "1",
                "contactInfo": {
                    "email": "a@b.co",
                    "fax": "1",
                    "address": {"city": "Paris", "street": "Rue"},
                },
            }
        ]
        plan = self._plan(
            (("contactInfo",), ("address", "city")),
            (("contactInfo",), ("email",)),
        )
        assert prune_composites(records, plan)[0]["contactInfo"] == {
            "address": {"city": "Paris"},
            "email": "a@b.co",
        }

    def test_missing_sub_path_becomes_none(self):
        records = [{"id": "1", "contactInfo": {"email": "a@b.co"}}]
        result = prune_composites(records, self._plan((("contactInfo",), ("fax",))))
        assert result[0]["contactInfo"] is None

    def test_lists_are_pruned_item_by_item(self):
        records = [
            {
                "id": "1",
                "contactInfo": {
                    "phones": [
                        {"number": "555", "type": "home"},
                        {"number": "777", "type": "work"},
                    ]
                },
            }
        ]
        result = prune_composites(records, self._plan((("contactInfo",), ("phones", "number"))))
        assert result[0]["contactInfo"] == {"phones": [{"number": "555"}, {"number": "777"}]}

    def test_composite_under_to_one_relation(self):
        records = [{"id": "u1", "person": {"contactInfo": {"email": "a@b.co", "fax": "1"}}}]
        result = prune_composites(
            records, self._plan((("person", "contactInfo"), ("email",)))
        )
        assert result[0]["person"]["contactInfo"] == {"email": "a@b.co"}

    def test_input_records_are_not_modified(self):
        records = [{"id": "1", "contactInfo": {"email": "a@b.co", "fax": "1"}}]
        prune_composites(records, self._plan((("contactInfo",), ("email",))))
        assert records[0]["contactInfo"] == {"email": "a@b.co", "fax": "1"}

    def test_null_composite_stays_null(self):
        records = [{"id": "1", "contactInfo": None}]
        result = prune_composites(records, self._plan((("contactInfo",), ("email",))))
        assert result[0]["contactInfo"] is None
