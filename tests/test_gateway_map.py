import pytest
from deepdiff import DeepDiff

from gateway_sdk.errors import MapParseError, TypeMismatchError, ValidationError
from gateway_sdk.gateway_map import GatewayMap


# =============================================================================
# Path access
# =============================================================================

class TestPathAccess:

    def test_set_then_get(self):
        m = GatewayMap().set("a.b.c", "value")
        assert m.get("a.b.c") == "value"
        assert m["a.b.c"] == "value"

    def test_set_creates_intermediate_maps(self):
        m = GatewayMap().set("a.b.c", 1)
        assert isinstance(m["a"], GatewayMap)
        assert isinstance(m["a.b"], GatewayMap)
        assert m.to_dict() == {"a": {"b": {"c": 1}}}

    def test_set_is_chainable(self):
        m = GatewayMap().set("order.amount", "10.00").set("order.currency", "USD")
        assert m.to_dict() == {"order": {"amount": "10.00", "currency": "USD"}}

    def test_setitem_uses_paths(self):
        m = GatewayMap()
        m["sourceOfFunds.type"] = "CARD"
        assert m.to_dict() == {"sourceOfFunds": {"type": "CARD"}}

    def test_overwrite_leaf(self):
        m = GatewayMap().set("a.b", 1).set("a.b", 2)
        assert m["a.b"] == 2

    def test_set_through_scalar_raises(self):
        m = GatewayMap().set("a", "scalar")
        with pytest.raises(TypeMismatchError):
            m.set("a.b", 1)
        assert m["a"] == "scalar"

    def test_set_through_null_raises(self):
        m = GatewayMap().set("a", None)
        with pytest.raises(TypeMismatchError):
            m.set("a.b", 1)

    def test_type_mismatch_is_a_validation_error(self):
        m = GatewayMap().set("a", [1, 2])
        with pytest.raises(ValidationError):
            m.set("a.b", 1)

    def test_missing_path_reads_as_absent(self):
        m = GatewayMap().set("a.b", 1)
        assert m.get("a.c") is None
        assert m.get("x.y.z", "default") == "default"
        with pytest.raises(KeyError):
            m["a.c"]

    def test_read_through_scalar_is_absent(self):
        m = GatewayMap().set("a", "scalar")
        assert m.get("a.b") is None
        assert "a.b" not in m

    def test_contains(self):
        m = GatewayMap().set("a.b", None)
        assert "a.b" in m
        assert m.contains_key("a")
        assert not m.contains_key("a.c")

    def test_stored_null_is_present(self):
        m = GatewayMap().set("a", None)
        assert "a" in m
        assert m["a"] is None

    def test_remove(self):
        m = GatewayMap().set("a.b", 1).set("a.c", 2)
        assert m.remove("a.b") == 1
        assert m.remove("a.b") is None
        assert m.remove("a.b", "gone") == "gone"
        assert m.to_dict() == {"a": {"c": 2}}

    def test_del(self):
        m = GatewayMap().set("a.b", 1)
        del m["a.b"]
        assert m.to_dict() == {"a": {}}
        with pytest.raises(KeyError):
            del m["a.b"]

    @pytest.mark.parametrize("path", ["", "a..b", ".a", "a.", None, 5])
    def test_invalid_paths(self, path):
        with pytest.raises(ValidationError):
            GatewayMap().set(path, 1)

    def test_len_and_iter_are_top_level(self):
        m = GatewayMap().set("a.b", 1).set("c", 2)
        assert len(m) == 2
        assert sorted(m) == ["a", "c"]


# =============================================================================
# Construction and copying
# =============================================================================

class TestConstruction:

    def test_empty(self):
        assert GatewayMap().to_dict() == {}
        assert GatewayMap(None).to_dict() == {}

    def test_from_dict_treats_keys_as_paths(self):
        m = GatewayMap({"order.amount": "1.00", "session": {"id": "s"}})
        assert m.to_dict() == {"order": {"amount": "1.00"}, "session": {"id": "s"}}

    def test_from_json_string(self):
        m = GatewayMap('{"a": {"b": 1}}')
        assert m["a.b"] == 1

    def test_unsupported_source(self):
        with pytest.raises(ValidationError):
            GatewayMap(42)

    def test_construction_copies_nested_values(self):
        source = {"a": {"b": [1, {"c": 2}]}}
        m = GatewayMap(source)
        source["a"]["b"][1]["c"] = 99
        assert m.to_dict() == {"a": {"b": [1, {"c": 2}]}}

    def test_copy_is_deep(self):
        original = GatewayMap().set("a.b", 1)
        clone = original.copy()
        clone.set("a.b", 2).set("a.c", 3)
        assert original.to_dict() == {"a": {"b": 1}}

    def test_nested_mapping_values_become_maps(self):
        m = GatewayMap().set("a", {"b": {"c": 1}})
        assert isinstance(m["a.b"], GatewayMap)
        assert m["a.b.c"] == 1

    def test_equality(self):
        assert GatewayMap().set("a.b", 1) == GatewayMap({"a": {"b": 1}})
        assert GatewayMap().set("a.b", 1) == {"a": {"b": 1}}
        assert GatewayMap() != "not a map"


# =============================================================================
# JSON
# =============================================================================

class TestJson:

    def test_round_trip(self):
        document = {
            "apiOperation": "AUTHENTICATE_PAYER",
            "authentication": {"3ds2": {"sdk": {"timeout": 300}}, "redirectHtml": "<html/>"},
            "flags": [True, False, None],
            "amount": 10.5,
            "items": [{"name": "a"}, {"name": "b"}],
        }
        parsed = GatewayMap.from_json(GatewayMap.from_json(
            '{"apiOperation":"AUTHENTICATE_PAYER","authentication":{"3ds2":{"sdk":{"timeout":300}},'
            '"redirectHtml":"<html/>"},"flags":[true,false,null],"amount":10.5,'
            '"items":[{"name":"a"},{"name":"b"}]}'
        ).to_json())
        assert DeepDiff(parsed.to_dict(), document) == {}

    def test_to_json_is_compact(self):
        assert GatewayMap().set("a.b", 1).to_json() == '{"a":{"b":1}}'

    def test_lists_of_objects_are_readable(self):
        m = GatewayMap.from_json('{"items": [{"name": "a"}]}')
        assert isinstance(m["items"][0], GatewayMap)
        assert m["items"][0]["name"] == "a"

    def test_dotted_json_keys_are_kept_verbatim(self):
        m = GatewayMap.from_json('{"a.b": 1}')
        assert m.to_json() == '{"a.b":1}'
        assert dict(m.items()) == {"a.b": 1}

    def test_dotted_keys_nest_from_mappings_only(self):
        from_mapping = GatewayMap({"a.b": 1})
        from_json = GatewayMap('{"a.b": 1}')

        assert from_mapping.to_dict() == {"a": {"b": 1}}
        assert from_json.to_dict() == {"a.b": 1}
        assert from_json.copy().to_dict() == {"a.b": 1}
        assert GatewayMap.from_json(from_json.to_json()) == from_json
        assert GatewayMap(from_json.to_dict()).to_dict() == {"a": {"b": 1}}

    @pytest.mark.parametrize("data", [None, "", "   "])
    def test_empty_input_is_empty_map(self, data):
        assert GatewayMap.from_json(data).to_dict() == {}

    @pytest.mark.parametrize("data", ["{not json", "[1, 2]", '"string"', "42"])
    def test_invalid_input(self, data):
        with pytest.raises(MapParseError):
            GatewayMap.from_json(data)
