"""
Unit tests for the name-based resource matching fallbacks.
"""

from services.building_ops.core.resource_matching import (
    does_foreign_reservation_match_resource,
    is_word_boundary_match,
    location_fuzzy_match,
    locations_match,
    normalize_resource_name,
    parse_foreign_resource_field,
    resource_names_match,
)


class TestParseForeignResourceField:
    def test_plain_string(self):
        info = parse_foreign_resource_field({"resource": " Beit Midrash "})
        assert info.name == "Beit Midrash"
        assert info.id is None

    def test_embedded_object(self):
        info = parse_foreign_resource_field(
            {"resource": {"id": "42", "description": "Ulam"}}
        )
        assert info.name == "Ulam"
        assert info.id == 42

    def test_top_level_id_wins(self):
        info = parse_foreign_resource_field(
            {"resource_id": 7, "resource": {"id": 42, "name": "Ulam"}}
        )
        assert info.id == 7

    def test_missing_resource(self):
        info = parse_foreign_resource_field({})
        assert info.name == ""
        assert info.id is None


class TestResourceNames:
    def test_normalize_resource_name(self):
        assert normalize_resource_name("614 Science Lab") == "science lab"
        assert normalize_resource_name("Ulam (Main)") == "ulam main"
        assert normalize_resource_name("Multi-Purpose  Room") == "multi-purpose room"
        assert normalize_resource_name(None) == ""

    def test_resource_names_match(self):
        assert resource_names_match("614 Science Lab", "science lab")
        assert resource_names_match("Ulam", "Ulam 1")
        assert not resource_names_match("Ulam", "Ulamot")
        assert not resource_names_match("", "Ulam")

    def test_foreign_id_is_authoritative(self):
        record = {"resource_id": 12, "resource": "Beit Midrash"}
        assert does_foreign_reservation_match_resource(record, 12, "Gym")
        # Same name, different id: never a match
        assert not does_foreign_reservation_match_resource(record, 5, "Beit Midrash")

    def test_name_fallback_without_id(self):
        record = {"resource": "BM"}
        assert does_foreign_reservation_match_resource(record, 5, "Beit Midrash", "BM")
        assert not does_foreign_reservation_match_resource(record, 5, "Beit Midrash")


class TestLocationFuzzyMatch:
    def test_location_contains_description(self):
        assert location_fuzzy_match("Ulam - Main Hall", "Ulam")

    def test_reverse_containment_is_excluded(self):
        assert not location_fuzzy_match("Ulam", "Ulam Main Hall")

    def test_abbreviation_on_word_boundary(self):
        assert location_fuzzy_match("101 Beit Midrash", "Beit Midrash Annex", "101")
        assert not location_fuzzy_match("1012 Library", "Beit Midrash Annex", "101")

    def test_empty_values(self):
        assert not location_fuzzy_match(None, "Ulam")
        assert not location_fuzzy_match("Ulam", "")

    def test_word_boundary_helper(self):
        assert is_word_boundary_match("101, beit midrash", "101")
        assert is_word_boundary_match("room 101", "101")
        assert not is_word_boundary_match("room 101a", "101")


class TestLocationsMatch:
    def test_containment_either_way(self):
        assert locations_match("Gym", "Main Gym")
        assert locations_match("Main Gym", "gym")

    def test_same_room_number(self):
        assert locations_match("Room 204", "204 Science")

    def test_different(self):
        assert not locations_match("Room 204", "Room 205")
        assert not locations_match(None, "Gym")
