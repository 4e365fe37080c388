"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides a small on-disk ZCL metadata tree plus a fresh store per test.
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest
import pytest_asyncio

# Insert local src directory at the beginning of sys.path
# This ensures that the local zclgen package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from zclgen.loader import PackageContext, load_metadata  # noqa: E402
from zclgen.store.database import Database  # noqa: E402

TYPES_XML = """<?xml version="1.0"?>
<configurator>
  <domain name="General" spec="zcl-1.0-07-5123-03" certifiable="true">
    <older spec="zcl-0.9" certifiable="false"/>
  </domain>
  <atomic>
    <type id="0x10" name="boolean" size="1" description="Boolean" discrete="true"/>
    <type id="0x20" name="int8u" size="1" description="Unsigned 8-bit integer"/>
    <type id="0x21" name="int16u" size="2" description="Unsigned 16-bit integer"/>
    <type id="0x42" name="char_string" description="Character string" string="true" char="true"/>
  </atomic>
  <enum name="Status" type="ENUM8">
    <item name="Success" value="0x00"/>
    <item name="Failure" value="0x01"/>
  </enum>
  <bitmap name="OnOffControl" type="BITMAP8">
    <field name="AcceptOnlyWhenOn" mask="0x01"/>
    <field name="Reserved" mask="0xFE"/>
  </bitmap>
  <bitmap name="Feature" type="BITMAP32">
    <field name="Lighting" mask="0x01"/>
  </bitmap>
  <struct name="ReadAttributeStatusRecord">
    <item name="attributeId" type="ATTRIBUTE_ID"/>
    <item name="status" type="Status"/>
    <item name="attributeType" type="INT8U"/>
  </struct>
</configurator>
"""

GENERAL_XML = """<?xml version="1.0"?>
<configurator>
  <cluster>
    <name>On/off</name>
    <domain>General</domain>
    <description>Switch devices between On and Off states.</description>
    <code>0x0006</code>
    <define>ON_OFF_CLUSTER</define>
    <attribute side="server" code="0x0000" define="ON_OFF" type="BOOLEAN" min="0x00" max="0x01" writable="false" default="0x00" reportable="true" optional="false">on/off</attribute>
    <attribute side="server" code="0x4000" define="GLOBAL_SCENE_CONTROL" type="BOOLEAN" removedIn="zcl-9">global scene control</attribute>
    <command source="client" code="0x00" name="Off" optional="false">
      <description>Turn the device off.</description>
    </command>
    <command source="client" code="0x40" name="OffWithEffect" optional="true">
      <description>Turn the device off with an effect.</description>
      <arg name="EffectId" type="INT8U"/>
      <arg name="Legacy" type="INT8U" removedIn="zcl-8"/>
      <arg name="EffectVariant" type="INT8U"/>
    </command>
    <globalAttribute side="either" code="0xFFFD" value="2"/>
  </cluster>
  <global>
    <attribute side="either" code="0xFFFD" define="CLUSTER_REVISION" type="INT16U" default="0x0001">cluster revision</attribute>
  </global>
  <deviceType>
    <name>HA-onoff</name>
    <domain>HA</domain>
    <typeName>HA On/Off Light</typeName>
    <profileId editable="false">0x0104</profileId>
    <deviceId editable="false">0x0100</deviceId>
    <clusters lockOthers="true">
      <include cluster="On/off" client="false" server="true" clientLocked="true" serverLocked="true">
        <requireAttribute>ON_OFF</requireAttribute>
        <requireCommand>Off</requireCommand>
      </include>
      <include cluster="Missing" client="true" server="false"/>
    </clusters>
  </deviceType>
</configurator>
"""

EXTENSION_XML = """<?xml version="1.0"?>
<configurator>
  <clusterExtension code="0x0006">
    <attribute side="server" code="0x4001" define="ON_TIME" type="INT16U" manufacturerCode="0x1002">on time</attribute>
    <command source="client" code="0x42" name="OnWithTimedOff">
      <arg name="OnOffControl" type="OnOffControl"/>
    </command>
  </clusterExtension>
</configurator>
"""

MANUFACTURERS_XML = """<?xml version="1.0"?>
<map>
  <mapping code="0x1002" translation="Ember"/>
  <mapping code="0x1049" translation="Silicon Labs"/>
</map>
"""

# Extension first: it must still attach to the cluster declared later.
ZCL_PROPERTIES = """# Test metadata
xmlRoot=., ./missing-root
xmlFile=extension.xml, types.xml, general.xml
manufacturersXml=manufacturers.xml
zclSchema=zcl.xsd
zclValidation=zcl-validation.js
version=ZCL Test Data
supportCustomZclDevice=true

options.text.defaultResponsePolicy = Always, Conditional, Never
options.bool = commandDiscovery
defaults.text.defaultResponsePolicy = always
defaults.bool.commandDiscovery = true
"""


def write_metadata_tree(root: Path) -> Path:
    """Write the sample metadata files into ``root`` and return it."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "types.xml").write_text(TYPES_XML)
    (root / "general.xml").write_text(GENERAL_XML)
    (root / "extension.xml").write_text(EXTENSION_XML)
    (root / "manufacturers.xml").write_text(MANUFACTURERS_XML)
    (root / "zcl.xsd").write_text("<xs:schema xmlns:xs='http://www.w3.org/2001/XMLSchema'/>")
    (root / "zcl-validation.js").write_text("// validation script\n")
    (root / "zcl.properties").write_text(ZCL_PROPERTIES)
    return root


@pytest.fixture
def metadata_dir(tmp_path: Path) -> Path:
    """Directory holding the sample metadata tree."""
    return write_metadata_tree(tmp_path / "zcl")


@pytest.fixture
def properties_manifest(metadata_dir: Path) -> Path:
    return metadata_dir / "zcl.properties"


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    """Fresh store with all tables created."""
    database = Database(tmp_path / "zcl.db")
    database.create_all()
    yield database
    database.dispose()


@pytest_asyncio.fixture
async def loaded_package(db: Database, properties_manifest: Path) -> PackageContext:
    """The sample manifest loaded into ``db``."""
    return await load_metadata(db, properties_manifest)
