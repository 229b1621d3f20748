import pytest

from statfin_mcp.exceptions import TableFormatError
from statfin_mcp.jsonstat import (
    LabelRule,
    SelectIndicator,
    SplitIndicators,
    SumIndicators,
    TOTAL_SERIES,
    decode_coordinates,
    decode_series,
    decode_table,
    encode_coordinates,
    parse_json_stat2,
    resolve_indicator_index,
    resolve_preferred_code,
    resolve_preferred_label,
    resolve_total_index,
)
from statfin_mcp.models.types import Municipality

H = Municipality.HALSUA
K = Municipality.KAUSTINEN


class TestCoordinates:
    def test_last_dimension_varies_fastest(self):
        assert decode_coordinates(0, [2, 3]) == [0, 0]
        assert decode_coordinates(1, [2, 3]) == [0, 1]
        assert decode_coordinates(3, [2, 3]) == [1, 0]
        assert decode_coordinates(5, [2, 3]) == [1, 2]

    def test_three_dimensions(self):
        # 1 * (3 * 4) + 2 * 4 + 3
        assert decode_coordinates(23, [2, 3, 4]) == [1, 2, 3]

    def test_every_index_round_trips(self):
        sizes = [2, 3, 4]
        for i in range(24):
            coords = decode_coordinates(i, sizes)
            assert all(0 <= c < s for c, s in zip(coords, sizes))
            assert encode_coordinates(coords, sizes) == i

    def test_single_dimension(self):
        assert decode_coordinates(4, [5]) == [4]


class TestTotalIndex:
    def test_sentinel_code(self):
        assert resolve_total_index({"1": "Miehet", "2": "Naiset", "SSS": "Yhteensä"}) == 2

    def test_sentinel_code_beats_label(self):
        labels = {"A": "Kaikki toimialat", "S": "Sukupuolet"}
        assert resolve_total_index(labels) == 1

    def test_label_terms(self):
        assert resolve_total_index({"1": "Miehet", "9": "Kaikki ikäluokat"}) == 1
        assert resolve_total_index({"a": "Teollisuus", "b": "Koko toimiala"}) == 1

    def test_falls_back_to_first(self):
        assert resolve_total_index({"x": "Teollisuus", "y": "Palvelut"}) == 0


class TestIndicatorIndex:
    def test_keyword_match(self):
        labels = {"a": "Toimipaikat", "b": "Yritysten lukumäärä"}
        assert resolve_indicator_index(labels, ["lukumäärä"]) == 1

    def test_case_insensitive(self):
        labels = {"a": "Kuolleet", "b": "ELÄVÄNÄ SYNTYNEET"}
        assert resolve_indicator_index(labels, ["elävänä syntyneet"]) == 1

    def test_exclude(self):
        labels = {"a": "Väkiluku, muutos", "b": "Väkiluku"}
        assert resolve_indicator_index(labels, ["väkiluku"], exclude=["muutos"]) == 1

    def test_falls_back_to_first(self):
        assert resolve_indicator_index({"a": "Kuolleet"}, ["huoltosuhde"]) == 0


class TestLabelRules:
    def test_exact_rule_ignores_change_variant(self):
        labels = {"01": "Väkiluku", "02": "Väkiluku, muutos"}
        rules = (LabelRule(exact="väkiluku"),)
        assert resolve_preferred_code(labels, rules) == "01"
        assert resolve_preferred_label(list(labels.values()), rules) == "Väkiluku"

    def test_priority_order(self):
        labels = [
            "Työllisyysaste, %",
            "Työllisyysaste, %, muutos",
            "Työllisyysaste 18-64-vuotiaat, %",
        ]
        rules = (
            LabelRule(include=("työllisyysaste", "%"), any_of=("18", "64"), exclude=("muutos",)),
            LabelRule(include=("työllisyysaste", "%"), exclude=("muutos",)),
        )
        assert resolve_preferred_label(labels, rules) == "Työllisyysaste 18-64-vuotiaat, %"
        assert resolve_preferred_label(labels[:2], rules) == "Työllisyysaste, %"

    def test_no_match(self):
        assert resolve_preferred_label(["Kuolleet"], (LabelRule(exact="Väkiluku"),)) is None


class TestParseJsonStat:
    def test_dict_index(self, json_stat):
        payload = json_stat(
            [("Alue", {"KU074": "Halsua", "KU236": "Kaustinen"}), ("Vuosi", {"2023": "2023"})],
            [1.0, 2.0],
        )
        table = parse_json_stat2(payload)
        assert table.dimensions == ["Alue", "Vuosi"]
        assert table.sizes == [2, 1]
        assert table.codes("Alue") == ["KU074", "KU236"]
        assert list(table.categories["Alue"].values()) == ["Halsua", "Kaustinen"]
        assert table.values == [1.0, 2.0]

    def test_list_index_and_missing_labels(self):
        payload = {
            "id": ["Vuosi"],
            "size": [2],
            "dimension": {"Vuosi": {"category": {"index": ["2023", "2024"]}}},
            "value": [5, None],
        }
        table = parse_json_stat2(payload)
        assert table.categories["Vuosi"] == {"2023": "2023", "2024": "2024"}
        assert table.values == [5.0, None]

    def test_index_order_follows_positions(self):
        payload = {
            "id": ["Vuosi"],
            "size": [2],
            "dimension": {"Vuosi": {"category": {"index": {"2024": 1, "2023": 0}}}},
            "value": [1, 2],
        }
        assert parse_json_stat2(payload).codes("Vuosi") == ["2023", "2024"]

    def test_sparse_values(self, json_stat):
        payload = json_stat(
            [("Alue", {"KU074": "Halsua"}), ("Vuosi", {"2022": "2022", "2023": "2023"})],
            {"1": 7},
        )
        assert parse_json_stat2(payload).values == [None, 7.0]

    def test_value_length_mismatch(self, json_stat):
        payload = json_stat([("Vuosi", {"2023": "2023"})], [1.0])
        payload["value"] = [1.0, 2.0]
        with pytest.raises(TableFormatError):
            parse_json_stat2(payload)

    def test_size_mismatch(self, json_stat):
        payload = json_stat([("Vuosi", {"2023": "2023"})], [1.0])
        payload["size"] = [2]
        with pytest.raises(TableFormatError):
            parse_json_stat2(payload)

    def test_missing_keys(self):
        with pytest.raises(TableFormatError):
            parse_json_stat2({"id": ["Vuosi"]})


class TestDecodeTable:
    def test_every_year_emitted_and_absent_is_not_zero(self, json_stat):
        payload = json_stat(
            [
                ("Alue", {"KU074": "Halsua", "KU236": "Kaustinen"}),
                ("Vuosi", {"2022": "2022", "2023": "2023", "2024": "2024"}),
            ],
            [1100.0, None, 0.0, 4200.0, 4210.0, None],
        )
        series = decode_series(parse_json_stat2(payload), "Alue", "Vuosi")

        assert [r.year for r in series] == [2022, 2023, 2024]
        assert series[0].values == {H: 1100.0, K: 4200.0}
        assert series[1].values == {K: 4210.0}
        assert not series[1].has(H)
        assert series[2].values == {H: 0.0}
        assert series[2].get(K) is None

    def test_incidental_dimension_pinned_to_total(self, json_stat):
        payload = json_stat(
            [
                ("Alue", {"KU074": "Halsua"}),
                ("Sukupuoli", {"1": "Miehet", "2": "Naiset", "SSS": "Yhteensä"}),
                ("Vuosi", {"2024": "2024"}),
            ],
            [550.0, 540.0, 1090.0],
        )
        series = decode_series(parse_json_stat2(payload), "Alue", "Vuosi")
        assert series[0].get(H) == 1090.0

    def test_select_indicator_by_keyword(self, json_stat):
        payload = json_stat(
            [
                ("Kunta", {"KU236": "Kaustinen"}),
                ("Vuosi", {"2023": "2023"}),
                ("Tiedot", {"toimip": "Toimipaikat", "yrit": "Yritysten lukumäärä"}),
            ],
            [210.0, 180.0],
        )
        series = decode_series(
            parse_json_stat2(payload),
            "Kunta",
            "Vuosi",
            SelectIndicator(keywords=("yritys", "lukumäärä")),
        )
        assert series[0].get(K) == 180.0

    def test_sum_over_indicator(self, json_stat):
        payload = json_stat(
            [
                ("Vuosi", {"2024": "2024"}),
                ("Oppilaitoksen sijaintialue", {"KU074": "Halsua"}),
                ("Jatko-opinnot", {"1": "Lukio", "2": "Ammatillinen"}),
            ],
            [3.0, 4.0],
        )
        series = decode_series(
            parse_json_stat2(payload),
            "Oppilaitoksen sijaintialue",
            "Vuosi",
            SumIndicators("Jatko-opinnot"),
        )
        assert series[0].get(H) == 7.0

    def test_split_by_label_and_code(self, json_stat):
        payload = json_stat(
            [
                ("Alue", {"KU074": "Halsua"}),
                ("Tiedot", {"M408": "Väkiluku", "M409": "Väkiluku, muutos"}),
                ("Vuosi", {"2024": "2024"}),
            ],
            [1100.0, -10.0],
        )
        table = parse_json_stat2(payload)

        by_label = decode_table(table, "Alue", "Vuosi", SplitIndicators("Tiedot"))
        assert set(by_label) == {"Väkiluku", "Väkiluku, muutos"}
        assert by_label["Väkiluku"][0].get(H) == 1100.0

        by_code = decode_table(table, "Alue", "Vuosi", SplitIndicators("Tiedot", by="code"))
        assert by_code["M409"][0].get(H) == -10.0

    def test_populated_cells_match_the_pinned_slice(self, json_stat):
        dimensions = [
            ("Alue", {"KU074": "Halsua", "KU236": "Kaustinen", "SSS": "KOKO MAA"}),
            ("Tiedot", {"a": "Väkiluku", "b": "Syntyneet"}),
            ("Sukupuoli", {"1": "Miehet", "2": "Naiset", "SSS": "Yhteensä"}),
            ("Vuosi", {"2023": "2023", "2024": "2024"}),
        ]
        # Halsua/Väkiluku/Yhteensä/2024 and Kaustinen/Syntyneet/Yhteensä/2023
        missing = {5, 22}
        values = [None if i in missing else float(i + 1) for i in range(36)]
        result = decode_table(
            parse_json_stat2(json_stat(dimensions, values)),
            "Alue",
            "Vuosi",
            SplitIndicators("Tiedot"),
        )

        # 2 municipalities x 2 indicators x 2 years on the totals slice, 2 of them null
        populated = sum(len(record.values) for series in result.values() for record in series)
        assert populated == 6
        assert result["Väkiluku"][0].values == {H: 5.0, K: 17.0}
        assert result["Väkiluku"][1].values == {K: 18.0}
        assert result["Syntyneet"][0].values == {H: 11.0}
        assert result["Syntyneet"][1].values == {H: 12.0, K: 24.0}

    def test_unknown_entities_ignored(self, json_stat):
        payload = json_stat(
            [
                ("Alue", {"SSS": "KOKO MAA", "KU074": "Halsua"}),
                ("Vuosi", {"2024": "2024"}),
            ],
            [5600000.0, 1100.0],
        )
        series = decode_series(parse_json_stat2(payload), "Alue", "Vuosi")
        assert series[0].values == {H: 1100.0}

    def test_missing_year_dimension(self, json_stat):
        payload = json_stat([("Alue", {"KU074": "Halsua"})], [1.0])
        assert decode_table(parse_json_stat2(payload), "Alue", "Vuosi") == {}

    def test_missing_indicator_dimension_for_sum(self, json_stat):
        payload = json_stat(
            [("Alue", {"KU074": "Halsua"}), ("Vuosi", {"2024": "2024"})], [1.0]
        )
        table = parse_json_stat2(payload)
        assert decode_table(table, "Alue", "Vuosi", SumIndicators("Jatko-opinnot")) == {}
        assert decode_series(table, "Alue", "Vuosi", SumIndicators("Jatko-opinnot")) == ()

    def test_dimensions_found_by_name_fragment(self, json_stat):
        payload = json_stat(
            [("Vuosi", {"2024": "2024"}), ("Kunta", {"KU236": "Kaustinen"})], [4261.0]
        )
        result = decode_table(parse_json_stat2(payload), None, None)
        assert result[TOTAL_SERIES][0].get(K) == 4261.0
