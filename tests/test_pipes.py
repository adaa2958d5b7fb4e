"""Tests for the default pipes, run through full template evaluation."""

from dataclasses import dataclass
from typing import Any

import pytest

from simplex import (
    BasicKeyResolver,
    ConstKeyHandler,
    JsonNode,
    Key,
    PipeRegistry,
    PipeSet,
    Simplex,
    UnknownPipeError,
)
from simplex.model.values import to_text
from simplex.template.functions import NUMBER_KEYS


@dataclass(frozen=True)
class Item:
    id: str
    value: Any


def ordered_set(*items):
    """An unordered collection (a key view) with a predictable iteration order."""
    return dict.fromkeys(items).keys()


@pytest.fixture
def simplex():
    key_resolver = BasicKeyResolver({
        Key("ns", "key1"): ConstKeyHandler(["A", "B", "C"]),
        Key("ns", "key2"): ConstKeyHandler("value2"),
        Key("ns", "pie"): ConstKeyHandler(3.14),
        Key("ns", "arrayNode"): ConstKeyHandler(JsonNode(["A", "B", "C"])),
        Key("ns", "set"): ConstKeyHandler(ordered_set("D", "E", "F")),
        Key("ns", "hashSet"): ConstKeyHandler({"D", "E", "F"}),
        Key("ns", "empty"): ConstKeyHandler([]),
        Key("ns", "listOfMaps"): ConstKeyHandler([
            {"id": "1", "value": "one"},
            {"id": "2", "value": "two"},
            {"id": "3", "value": "three"},
        ]),
        Key("ns", "setOfRecords"): ConstKeyHandler(frozenset([
            Item("1", "one"),
            Item("2", "two"),
            Item("3", "three"),
        ])),
        Key("ns", "boolRecords"): ConstKeyHandler({
            Item("1", True),
            Item("2", False),
            Item("3", "true"),
        }),
        Key("ns", "maxNum"): ConstKeyHandler("15.12,115.76,006,704,646.897654"),
        Key("ns", "maxNum2"): ConstKeyHandler([None, None, None]),
        Key("ns", "prices"): ConstKeyHandler(["1,204.50", 99, None, "n/a", "1.2.3"]),
    }).delegate(NUMBER_KEYS)
    return Simplex(keys=key_resolver)


class TestSize:

    def test_size_of_list_and_set(self, simplex):
        assert simplex.eval("${ns:key1 | size}", {}) == 3
        assert simplex.eval("${ns:set | size}", {}) == 3
        assert simplex.eval("${ns:hashSet | size}", {}) == 3

    def test_size_of_text_and_tree(self, simplex):
        assert simplex.eval("${ns:key2 | size}", {}) == 6
        assert simplex.eval("${ns:arrayNode | size}", {}) == 3

    def test_size_of_scalar_is_absent(self, simplex):
        assert simplex.eval("${ns:pie | size}", {}) is None


class TestFirstLastReversed:

    def test_first(self, simplex):
        assert simplex.eval("${ns:key1 | first}", {}) == "A"
        assert simplex.eval("${ns:set | first}", {}) == "D"
        assert simplex.eval("${ns:arrayNode | first}", {}) == "A"
        assert simplex.eval("${ns:key2 | first}", {}) == "v"

    def test_last(self, simplex):
        assert simplex.eval("${ns:key1 | last}", {}) == "C"
        assert simplex.eval("${ns:set | last}", {}) == "F"
        assert simplex.eval("${ns:key2 | last}", {}) == "2"

    def test_reversed(self, simplex):
        assert simplex.eval("${ns:key1 | reversed | first}", {}) == "C"
        assert simplex.eval("${ns:set | reversed | first}", {}) == "F"
        assert simplex.eval("${ns:key2 | reversed}", {}) == "2eulav"

    def test_empty_input(self, simplex):
        assert simplex.eval("${ns:empty | first}", {}) is None
        assert simplex.eval("${ns:empty | last}", {}) is None

    @pytest.mark.parametrize("key", ["key1", "set", "arrayNode", "key2"])
    def test_first_is_last_of_reversed(self, simplex, key):
        assert simplex.eval(f"${{ns:{key} | first}}", {}) == simplex.eval(f"${{ns:{key} | reversed | last}}", {})
        assert simplex.eval(f"${{ns:{key} | last}}", {}) == simplex.eval(f"${{ns:{key} | reversed | first}}", {})

    def test_reversed_does_not_mutate(self, simplex):
        source = ["A", "B", "C"]
        simplex = simplex.with_keys(BasicKeyResolver({Key("ns", "src"): ConstKeyHandler(source)}))
        assert simplex.eval("${ns:src | reversed}", {}) == ["C", "B", "A"]
        assert source == ["A", "B", "C"]


class TestSliceTake:

    def test_slice(self, simplex):
        assert simplex.eval("${ns:key1 | slice:0:0}", {}) == ["A"]
        assert simplex.eval("${ns:key1 | slice:0:1}", {}) == ["A", "B"]
        assert simplex.eval("${ns:key1 | slice:1:1}", {}) == ["B"]
        assert simplex.eval("${ns:set | slice:1:1}", {}) == ["E"]

    def test_slice_clamps(self, simplex):
        assert simplex.eval("${ns:key1 | slice:1:99}", {}) == ["B", "C"]
        assert simplex.eval("${ns:key1 | slice:5:9}", {}) == []
        assert simplex.eval("${ns:key1 | slice:2:1}", {}) == []
        assert simplex.eval("${ns:key1 | slice:1}", {}) == ["B", "C"]

    def test_slice_text(self, simplex):
        assert simplex.eval("${ns:key2 | slice:1:3}", {}) == "alu"

    def test_take(self, simplex):
        assert simplex.eval("${ns:key1 | take:2}", {}) == ["A", "B"]
        assert simplex.eval("${ns:key2 | take:3}", {}) == "val"
        assert simplex.eval("${ns:arrayNode | take:2}", {}) == ["A", "B"]
        assert simplex.eval("${ns:set | take:2}", {}) == ["D", "E"]

    def test_take_last(self, simplex):
        assert simplex.eval("${ns:key1 | takeLast:2}", {}) == ["B", "C"]
        assert simplex.eval("${ns:key2 | takeLast:3}", {}) == "ue2"
        assert simplex.eval("${ns:arrayNode | takeLast:2}", {}) == ["B", "C"]
        assert simplex.eval("${ns:set | takeLast:2}", {}) == ["E", "F"]

    def test_take_clamps(self, simplex):
        assert simplex.eval("${ns:key1 | take:10}", {}) == ["A", "B", "C"]
        assert simplex.eval("${ns:key1 | takeLast:10}", {}) == ["A", "B", "C"]
        assert simplex.eval("${ns:key1 | take:0}", {}) == []
        assert simplex.eval("${ns:key1 | takeLast:0}", {}) == []
        assert simplex.eval("${ns:key1 | take:-1}", {}) == []

    def test_bad_count_is_absent(self, simplex):
        assert simplex.eval("${ns:key1 | take:two}", {}) is None
        assert simplex.eval("${ns:key1 | take}", {}) is None


class TestFilterMap:

    def test_filter(self, simplex):
        assert simplex.eval("${ ns:listOfMaps | filter:id:1 }", {}) == [{"id": "1", "value": "one"}]
        assert simplex.eval("${ ns:listOfMaps | filter:id:4 }", {}) == []
        assert simplex.eval("${ ns:setOfRecords | filter:id:1 }", {}) == [Item("1", "one")]
        assert simplex.eval("${ ns:setOfRecords | filter:id:4 }", {}) == []

    def test_filter_compares_text(self, simplex):
        result = simplex.eval("${ns:boolRecords | filter:value:true }", {})
        assert len(result) == 2
        assert {item.id for item in result} == {"1", "3"}

    def test_filter_skips_scalars(self, simplex):
        assert simplex.eval("${ns:key1 | filter:id:1}", {}) == []

    def test_map(self, simplex):
        result = simplex.eval("${ns:boolRecords | map:value}", {})
        assert len(result) == 3
        assert sum(1 for v in result if to_text(v) == "true") == 2
        assert sum(1 for v in result if to_text(v) == "false") == 1
        assert sum(1 for v in result if isinstance(v, bool)) == 2

    def test_map_preserves_order(self, simplex):
        assert simplex.eval("${ns:listOfMaps | map:value}", {}) == ["one", "two", "three"]

    def test_map_then_first(self, simplex):
        assert simplex.eval("${ns:listOfMaps | filter:id:2 | map:value | first}", {}) == "two"


class TestMaxNum:

    def test_max_of_delimited_text(self, simplex):
        assert simplex.eval("${ns:maxNum | maxNum:3}", {}) == 704.0

    def test_max_of_all_absent(self, simplex):
        assert simplex.eval("${ns:maxNum2 | maxNum:1}", {}) is None

    def test_max_skips_unparseable(self, simplex):
        assert simplex.eval("${ns:prices | maxNum:1}", {}) == 1204.5

    def test_parsed_ast_can_be_reused(self, simplex):
        template = simplex.parse("${ns:maxNum | maxNum:3}")
        assert simplex.execute(template, {}) == 704.0
        assert simplex.execute(template, {"other": 1}) == 704.0

    def test_rounding(self, simplex):
        assert simplex.eval("${Math:PI | maxNum:2}", {}) == 3.14


class TestAbsence:

    @pytest.mark.parametrize("pipe", [
        "size", "first", "last", "reversed", "slice:0:1", "take:1",
        "takeLast:1", "filter:id:1", "map:id", "maxNum:1",
    ])
    def test_absence_passes_through(self, simplex, pipe):
        assert simplex.eval(f"${{ns:missing | {pipe}}}", {}) is None


class TestRegistry:

    def test_unknown_pipe(self, simplex):
        with pytest.raises(UnknownPipeError):
            simplex.eval("${ns:key1 | nope}", {})

    def test_unknown_pipe_raised_for_absent_input(self, simplex):
        with pytest.raises(UnknownPipeError):
            simplex.eval("${ns:missing | nope}", {})

    def test_apply_directly(self):
        registry = PipeRegistry()
        assert registry.apply("take", ["2"], ["A", "B", "C"]) == ["A", "B"]
        with pytest.raises(UnknownPipeError):
            registry.apply("nope", [], "x")

    def test_extension_pipe(self, simplex):
        pipes = simplex.pipes.with_pipe("double", lambda value, args: value * 2)
        doubling = simplex.with_pipes(pipes)
        assert doubling.eval("${ns:pie | double}", {}) == 6.28
        assert doubling.eval("${ns:missing | double}", {}) is None

    def test_defaults_cannot_be_replaced(self):
        with pytest.raises(ValueError):
            PipeRegistry().with_pipe("size", lambda value, args: 0)

    def test_pipe_sets_are_read_only(self):
        pipes = {"twice": lambda value, args: value * 2}
        pipe_set = PipeSet("demo", pipes)
        pipes["thrice"] = lambda value, args: value * 3
        assert list(pipe_set.pipes) == ["twice"]
        with pytest.raises(TypeError):
            pipe_set.pipes["other"] = lambda value, args: value
        assert list(pipe_set.qualified()) == ["demo.twice"]
