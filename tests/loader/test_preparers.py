"""Tests for node-to-record preparers."""

import pytest

from zclgen.core.errors import ParseError
from zclgen.loader.preparers import (
    mask_to_type,
    parse_int,
    prepare_attribute,
    prepare_bitmap,
    prepare_cluster,
    prepare_cluster_global_attributes,
    prepare_command,
    prepare_configurator,
    prepare_device_type,
    prepare_domain,
    prepare_manufacturer_codes,
    prepare_struct,
)
from zclgen.parsers import parse_xml


class TestParseInt:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("0x0006", 6), ("0XFF", 255), ("42", 42), ("  7 ", 7), ("", None), (None, None)],
    )
    def test_values(self, value: str | None, expected: int | None) -> None:
        assert parse_int(value) == expected

    def test_base_sixteen(self) -> None:
        assert parse_int("10", base=16) == 16

    def test_non_numeric_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_int("abc")


class TestMaskToType:
    @pytest.mark.parametrize(
        ("mask", "expected"),
        [(0x01, "bool"), (0x06, "enum8"), (0xFF, "enum8"), (0x1FF, "enum16"), (0x1FFFF, "enum32")],
    )
    def test_width_from_bit_count(self, mask: int, expected: str) -> None:
        assert mask_to_type(mask) == expected


class TestPrepareTypes:
    def test_struct_item_ordinals_follow_source_order(self) -> None:
        node = parse_xml(
            "<struct name='S'><item name='a' type='INT8U'/><item name='b' type='INT16U'/>"
            "<item name='c' type='Status' length='4' writable='true'/></struct>",
            "s.xml",
        )

        record = prepare_struct(node)

        assert [(i.name, i.ordinal) for i in record.items] == [("a", 0), ("b", 1), ("c", 2)]
        assert record.items[2].max_length == 4
        assert record.items[2].is_writable

    def test_bitmap_field_types_from_mask(self) -> None:
        node = parse_xml(
            "<bitmap name='Ctl' type='BITMAP8'><field name='a' mask='0x01'/>"
            "<field name='b' mask='0xFE'/></bitmap>",
            "b.xml",
        )

        record = prepare_bitmap(node)

        assert record.type == "BITMAP8"
        assert [(f.name, f.mask, f.type) for f in record.fields] == [
            ("a", 1, "bool"),
            ("b", 0xFE, "enum8"),
        ]

    def test_domain_spec_descriptions(self) -> None:
        node = parse_xml(
            "<domain name='General' spec='zcl-7' certifiable='true'><older spec='zcl-6'/></domain>",
            "d.xml",
        )

        record = prepare_domain(node)

        assert record.spec is not None
        assert record.spec.description == "Latest General spec: zcl-7"
        assert record.spec.certifiable
        assert [o.description for o in record.older] == ["Older General spec zcl-6"]

    def test_missing_required_attribute_raises(self) -> None:
        node = parse_xml("<struct><item name='a'/></struct>", "s.xml")

        with pytest.raises(ParseError) as exc_info:
            prepare_struct(node)

        assert exc_info.value.details["field"] == "name"


class TestPrepareClusterMembers:
    def test_removed_args_are_dropped_but_ordinals_keep_source_index(self) -> None:
        node = parse_xml(
            "<command code='0x40' name='OffWithEffect' source='client'>"
            "<arg name='a' type='INT8U'/><arg name='old' type='INT8U' removedIn='zcl-8'/>"
            "<arg name='b' type='INT8U' array='true'/></command>",
            "c.xml",
        )

        record = prepare_command(node, None)

        assert [(a.name, a.ordinal) for a in record.args] == [("a", 0), ("b", 2)]
        assert record.args[1].is_array
        assert record.code == 0x40

    def test_command_inherits_cluster_manufacturer_code(self) -> None:
        node = parse_xml("<command code='1' name='X'/>", "c.xml")

        assert prepare_command(node, 0x1002).manufacturer_code == 0x1002

    def test_removed_attribute_is_none(self) -> None:
        node = parse_xml("<attribute code='1' type='INT8U' removedIn='zcl-9'>x</attribute>", "a.xml")

        assert prepare_attribute(node, None) is None

    def test_attribute_type_is_lowercased_and_name_from_text(self) -> None:
        node = parse_xml(
            "<attribute side='server' code='0x0000' define='ON_OFF' type='BOOLEAN'>on/off</attribute>",
            "a.xml",
        )

        record = prepare_attribute(node, None)

        assert record is not None
        assert record.type == "boolean"
        assert record.name == "on/off"
        assert record.define == "ON_OFF"

    def test_cluster_from_child_elements(self) -> None:
        node = parse_xml(
            "<cluster manufacturerCode='0x1002'><name>Sample</name><code>0xFC00</code>"
            "<define>SAMPLE_CLUSTER</define><attribute code='1' type='INT8U'>a</attribute>"
            "<command code='0' name='Go'/></cluster>",
            "c.xml",
        )

        record = prepare_cluster(node)

        assert (record.code, record.name, record.define) == (0xFC00, "Sample", "SAMPLE_CLUSTER")
        assert record.attributes[0].manufacturer_code == 0x1002
        assert record.commands[0].manufacturer_code == 0x1002

    def test_extension_reads_code_attribute_only(self) -> None:
        node = parse_xml(
            "<clusterExtension code='0x0006'><command code='0x42' name='X'/></clusterExtension>",
            "e.xml",
        )

        record = prepare_cluster(node, is_extension=True)

        assert record.is_extension
        assert record.code == 6
        assert record.name is None
        assert [c.name for c in record.commands] == ["X"]


class TestGlobalAttributeDefaults:
    def test_either_side_yields_client_and_server(self) -> None:
        node = parse_xml(
            "<cluster><name>N</name><code>0x0006</code>"
            "<globalAttribute side='either' code='0xFFFD' value='2'/>"
            "<globalAttribute side='server' code='0xFFFC' value='1'/></cluster>",
            "g.xml",
        )

        record = prepare_cluster_global_attributes(node)

        assert record is not None
        assert record.cluster_code == 6
        assert [(v.code, v.side, v.value) for v in record.values] == [
            (0xFFFD, "client", "2"),
            (0xFFFD, "server", "2"),
            (0xFFFC, "server", "1"),
        ]

    def test_cluster_without_defaults_is_none(self) -> None:
        node = parse_xml("<cluster><name>N</name><code>6</code></cluster>", "g.xml")

        assert prepare_cluster_global_attributes(node) is None


class TestDeviceTypes:
    def test_include_directives(self) -> None:
        node = parse_xml(
            "<deviceType><name>HA-onoff</name><deviceId>0x0100</deviceId>"
            "<profileId>0x0104</profileId><typeName>Light</typeName>"
            "<clusters><include cluster='On/off' server='true' serverLocked='true'>"
            "<requireAttribute>ON_OFF</requireAttribute><requireCommand>Off</requireCommand>"
            "</include><include client='true'>Basic</include></clusters></deviceType>",
            "d.xml",
        )

        record = prepare_device_type(node)

        assert (record.code, record.profile_id, record.description) == (0x0100, 0x0104, "Light")
        first, second = record.clusters
        assert first.cluster_name == "On/off"
        assert first.server and first.server_locked and not first.client
        assert first.required_attributes == ["ON_OFF"]
        assert first.required_commands == ["Off"]
        assert second.cluster_name == "Basic"
        assert second.client


class TestWholeFile:
    def test_manufacturer_codes(self) -> None:
        root = parse_xml("<map><mapping code='0x1002' translation='Ember'/></map>", "m.xml")

        values = prepare_manufacturer_codes(root)

        assert [(v.code, v.label) for v in values] == [("0x1002", "Ember")]

    def test_non_configurator_root_is_empty(self) -> None:
        prepared = prepare_configurator(parse_xml("<zap><cluster/></zap>", "x.xml"))

        assert prepared.is_empty()

    def test_groups_every_kind(self) -> None:
        root = parse_xml(
            "<configurator><domain name='General'/>"
            "<atomic><type id='0x20' name='int8u' size='1'/></atomic>"
            "<atomic><type id='0x21' name='int16u' size='2'/></atomic>"
            "<enum name='E'/><bitmap name='B'/><struct name='S'/>"
            "<cluster><name>C</name><code>1</code></cluster>"
            "<global><attribute code='0xFFFD' type='INT16U'>rev</attribute></global>"
            "<clusterExtension code='1'/>"
            "<deviceType><name>D</name><deviceId>1</deviceId></deviceType></configurator>",
            "all.xml",
        )

        prepared = prepare_configurator(root)

        assert [a.name for a in prepared.atomics] == ["int8u", "int16u"]
        assert len(prepared.domains) == 1
        assert len(prepared.enums) == len(prepared.bitmaps) == len(prepared.structs) == 1
        assert len(prepared.clusters) == 1
        assert len(prepared.globals) == 1
        assert prepared.globals[0].code is None
        assert len(prepared.cluster_extensions) == 1
        assert len(prepared.device_types) == 1
        assert not prepared.is_empty()
