import dataclasses
import logging

import pytest

from dsvload.errors import (
    EmptyOrInvalidMappingList,
    InvalidColumnReference,
    InvalidFieldValue,
    MissingRequiredField,
    SchemaError,
)
from dsvload.relaxed import NO_VALUE, parse
from dsvload.schema import (
    BinDef,
    ColumnRef,
    CompiledSchema,
    MetaDef,
    compile_schema,
    compile_schema_strict,
)


CONFIG = """
{
  version: "2.0",
  dsv_config: { delimiter: "##", n_columns: 4, header_exist: true },
  mappings: [
    {
      key: { column_name: "id", type: "integer", remove_prefix: "ID-" },
      set: "demo",
      binList: [
        { name: "age", value: { column_name: "age", type: "integer" } },
        { name: { column_position: 3 },
          value: { column_position: "4", type: "blob", dst_type: "blob", encoding: "hex" } },
        { name: "source", value: "static-file" }
      ]
    },
    {
      secondary_mapping: "true",
      key: { column_position: 2 },
      set: { column_position: 1 },
      binList: [ { name: "id", value: { column_name: "id", type: "string" } } ]
    }
  ]
}
"""


def _doc(mapping: str = "", root_extra: str = ""):
    """Config text with one mapping body and optional extra root fields."""
    mappings = f", mappings: [ {mapping} ]" if mapping else ""
    return parse(f'{{version: "1", dsv_config: {{n_columns: 3}}{mappings}{root_extra}}}')


GOOD_BIN = '{ name: "b", value: { column_position: 1, type: "string" } }'


def _mapping(key='{ column_position: 1 }', set_='"s"', bins=None, extra=""):
    bins = f"[{GOOD_BIN}]" if bins is None else bins
    return f"{{ key: {key}, set: {set_}, binList: {bins}{extra} }}"


# ==========================================================
# HAPPY PATH
# ==========================================================

def test_full_config_compiles():
    schema = compile_schema(parse(CONFIG))
    assert isinstance(schema, CompiledSchema)
    assert dict(schema.dsv_config) == {
        "version": "2.0",
        "n_columns": "4",
        "delimiter": "##",
        "header_exist": "true",
    }
    assert len(schema.mappings) == 2

    primary = schema.mappings[0]
    assert primary.secondary_mapping is False
    assert primary.key == MetaDef(column=ColumnRef(name="id", src_type="integer", remove_prefix="ID-"))
    assert not primary.key.is_static
    assert primary.set.is_static and primary.set.static_value == "demo"

    age, blob, source = primary.bins
    assert age == BinDef(static_name="age", value_column=ColumnRef(name="age", src_type="integer"))
    assert blob.name_column == ColumnRef(position=2)
    assert blob.value_column == ColumnRef(position=3, src_type="blob", dst_type="blob", encoding="hex")
    assert source.static_value == "static-file"


def test_secondary_mapping_and_set_default_type():
    schema = compile_schema(parse(CONFIG))
    secondary = schema.mappings[1]
    assert secondary.secondary_mapping is True
    assert secondary.key.column.position == 1
    assert secondary.key.src_type is None
    assert secondary.set.column.position == 0
    assert secondary.set.src_type == "string"
    assert schema.primary is schema.mappings[0]
    assert schema.secondary == (secondary,)


def test_schema_unpacks_as_pair():
    dsv_config, mappings = compile_schema(parse(CONFIG))
    assert dsv_config["delimiter"] == "##"
    assert isinstance(mappings, tuple)


def test_missing_mappings_gives_empty_list():
    schema = compile_schema(parse('{"version":"1","dsv_config":{"n_columns":"3"}}'))
    assert schema is not None
    assert schema.mappings == ()
    assert dict(schema.dsv_config) == {"version": "1", "n_columns": "3"}


def test_plain_python_document():
    schema = compile_schema_strict({"version": 1, "dsv_config": {"n_columns": 3, "header_exist": False}})
    assert schema.dsv_config["version"] == "1"
    assert schema.dsv_config["n_columns"] == "3"
    assert schema.dsv_config["header_exist"] == "false"


def test_compiled_schema_is_immutable():
    schema = compile_schema(parse(CONFIG))
    with pytest.raises(dataclasses.FrozenInstanceError):
        schema.mappings[0].secondary_mapping = True
    with pytest.raises(TypeError):
        schema.dsv_config["delimiter"] = ","


@pytest.mark.parametrize("value, expected", [("true", True), ("FALSE", False), ("true ", True)])
def test_secondary_mapping_text(value, expected):
    schema = compile_schema_strict(_doc(_mapping(extra=f', secondary_mapping: "{value}"')))
    assert schema.mappings[0].secondary_mapping is expected


def test_secondary_mapping_literal():
    schema = compile_schema_strict(_doc(_mapping(extra=", secondary_mapping: true")))
    assert schema.mappings[0].secondary_mapping is True


# ==========================================================
# FAILURES
# ==========================================================

@pytest.mark.parametrize(
    "doc, exc, path",
    [
        ('{version: "1", dsv_config: {delimiter: ","}}', MissingRequiredField, "dsv_config.n_columns"),
        ('{dsv_config: {n_columns: 3}}', MissingRequiredField, "version"),
        ('{version: null, dsv_config: {n_columns: 3}}', MissingRequiredField, "version"),
        ('{version: "1"}', MissingRequiredField, "dsv_config"),
        ('{version: "1", dsv_config: "x"}', InvalidFieldValue, "dsv_config"),
        ('{version: [1], dsv_config: {n_columns: 3}}', InvalidFieldValue, "version"),
        ('{version: "1", dsv_config: {n_columns: 3}, mappings: {}}', EmptyOrInvalidMappingList, "mappings"),
        ('{version: "1", dsv_config: {n_columns: 3}, mappings: ["x"]}', InvalidFieldValue, "mappings[0]"),
        ("[1, 2]", InvalidFieldValue, ""),
    ],
)
def test_document_level_failures(doc, exc, path):
    with pytest.raises(exc) as err:
        compile_schema_strict(parse(doc))
    assert err.value.path == path


@pytest.mark.parametrize(
    "mapping, exc, path",
    [
        ("{ set: 's', binList: [%s] }" % GOOD_BIN, MissingRequiredField, "mappings[0].key"),
        (_mapping(key='"id"'), InvalidFieldValue, "mappings[0].key"),
        (_mapping(key="{ type: 'string' }"), InvalidColumnReference, "mappings[0].key"),
        (_mapping(key="{ column_position: 1, column_name: 'id' }"), InvalidColumnReference, "mappings[0].key"),
        (_mapping(key="{ column_position: 0 }"), InvalidFieldValue, "mappings[0].key.column_position"),
        (_mapping(key="{ column_position: 'abc' }"), InvalidFieldValue, "mappings[0].key.column_position"),
        (_mapping(key="{ column_position: 1.5 }"), InvalidFieldValue, "mappings[0].key.column_position"),
        (
            _mapping(key="{ column_position: '%s' }" % ("9" * 5000)),
            InvalidFieldValue,
            "mappings[0].key.column_position",
        ),
        ("{ key: { column_position: 1 }, binList: [%s] }" % GOOD_BIN, MissingRequiredField, "mappings[0].set"),
        (_mapping(set_="{ type: 'string' }"), InvalidColumnReference, "mappings[0].set"),
        (_mapping(set_="5"), InvalidFieldValue, "mappings[0].set"),
        ("{ key: { column_position: 1 }, set: 's' }", MissingRequiredField, "mappings[0].binList"),
        (_mapping(bins="[]"), EmptyOrInvalidMappingList, "mappings[0].binList"),
        (_mapping(bins="{}"), EmptyOrInvalidMappingList, "mappings[0].binList"),
        (_mapping(extra=", secondary_mapping: 'maybe'"), InvalidFieldValue, "mappings[0].secondary_mapping"),
    ],
)
def test_mapping_level_failures(mapping, exc, path):
    with pytest.raises(exc) as err:
        compile_schema_strict(_doc(mapping))
    assert err.value.path == path


@pytest.mark.parametrize(
    "bin_, exc, path",
    [
        ("{ value: 'v' }", MissingRequiredField, "mappings[0].binList[0].name"),
        ("{ name: 'n' }", MissingRequiredField, "mappings[0].binList[0].value"),
        ("{ name: 5, value: 'v' }", InvalidFieldValue, "mappings[0].binList[0].name"),
        ("{ name: {}, value: 'v' }", InvalidColumnReference, "mappings[0].binList[0].name"),
        (
            "{ name: { column_position: 1, column_name: 'x' }, value: 'v' }",
            InvalidColumnReference,
            "mappings[0].binList[0].name",
        ),
        ("{ name: 'n', value: { type: 'string' } }", InvalidColumnReference, "mappings[0].binList[0].value"),
        (
            "{ name: 'n', value: { column_position: 1, column_name: 'x', type: 'string' } }",
            InvalidColumnReference,
            "mappings[0].binList[0].value",
        ),
        ("{ name: 'n', value: { column_name: 'x' } }", MissingRequiredField, "mappings[0].binList[0].value.type"),
        ("{ name: 'n', value: [1] }", InvalidFieldValue, "mappings[0].binList[0].value"),
        ("'bin'", InvalidFieldValue, "mappings[0].binList[0]"),
    ],
)
def test_bin_level_failures(bin_, exc, path):
    with pytest.raises(exc) as err:
        compile_schema_strict(_doc(_mapping(bins=f"[{bin_}]")))
    assert err.value.path == path


def test_one_bad_mapping_aborts_whole_compile():
    good = _mapping()
    bad = _mapping(bins="[{ name: 'n', value: { type: 'string' } }]")
    assert compile_schema(_doc(f"{good}, {bad}")) is None


def test_empty_document_fails():
    with pytest.raises(MissingRequiredField):
        compile_schema_strict(NO_VALUE)
    assert compile_schema(parse("   ")) is None


def test_failure_is_logged_with_path_and_fragment(caplog):
    doc = parse('{version: "1", dsv_config: {delimiter: ";"}}')
    with caplog.at_level(logging.ERROR, logger="dsvload"):
        assert compile_schema(doc) is None
    assert "dsv_config.n_columns" in caplog.text
    assert '{"delimiter":";"}' in caplog.text


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        compile_schema_strict(parse("{}"))
    assert issubclass(InvalidColumnReference, SchemaError)
