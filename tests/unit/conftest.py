"""
Shared fixtures: a small structural model built directly in Python.

Layout on linux64 (pointer size 8)
──────────────────────────────────
coord        x@0 y@2 z@4                        size 6
base_item    vptr@0 id@8                        size 16
item_weapon  (base_item) pos@16 quality@24      size 32
world.T_units active@0 all[3]@8                 size 24
world        items[4]@0 units@32 frame_counter@56  size 64
"""

import io

import pytest

from memlayout.structures import (
    ABI,
    Bitfield,
    Compound,
    EnumType,
    EnumValue,
    Flag,
    GlobalObject,
    Member,
    MemberType,
    MemoryLayout,
    Structures,
    TypeKind,
    VersionInfo,
    VMethod,
)
from memlayout.report import ReportEmitter

WORLD_ADDRESS = 0x1C2B4A0
WEAPON_VTABLE = 0x1F00D00


def _prim(tag: str) -> MemberType:
    return MemberType(TypeKind.PRIMITIVE, name=tag)


def _ref(name: str) -> MemberType:
    return MemberType(TypeKind.COMPOUND, name=name)


@pytest.fixture
def structures() -> Structures:
    coord = Compound(
        name="coord",
        members=[
            Member("x", _prim("int16_t")),
            Member("y", _prim("int16_t")),
            Member("z", _prim("int16_t")),
        ],
    )
    base_item = Compound(
        name="base_item",
        members=[Member("id", _prim("int32_t"))],
        vmethods=[
            VMethod("getType"),
            VMethod("getSubtype"),
            VMethod(""),
            VMethod("moveToGround"),
        ],
    )
    item_weapon = Compound(
        name="item_weapon",
        parent_name="base_item",
        parent=base_item,
        members=[
            Member("pos", _ref("coord")),
            Member("quality", _prim("int32_t")),
        ],
        vmethods=[VMethod("getWeaponSkill")],
    )
    t_units = Compound(
        name="T_units",
        members=[
            Member("active", MemberType(TypeKind.POINTER, name="item_weapon")),
            Member("all", MemberType(TypeKind.STATIC_ARRAY, count=3, item=_prim("int32_t"))),
        ],
    )
    world = Compound(
        name="world",
        members=[
            Member("items", MemberType(
                TypeKind.STATIC_ARRAY, count=4,
                item=MemberType(TypeKind.POINTER, name="base_item"),
            )),
            Member("units", MemberType(TypeKind.COMPOUND, compound=t_units)),
            Member("frame_counter", _prim("int32_t")),
        ],
        nested={"T_units": t_units},
    )

    job_type = EnumType(
        name="job_type",
        values={
            "Dig": EnumValue("Dig", 0),
            "CarveFortification": EnumValue("CarveFortification", 1),
            "DetailWall": EnumValue("DetailWall", 4),
        },
    )
    unit_flags1 = Bitfield(
        name="unit_flags1",
        flags=[
            Flag("move_state", 0),
            Flag("inactive", 1),
            Flag("rider", 2),
            Flag("caged", 3),
            Flag("wide", 4, count=2),
            Flag("killed", 6),
        ],
    )

    return Structures(
        compounds={
            "coord": coord,
            "base_item": base_item,
            "item_weapon": item_weapon,
            "world": world,
        },
        enums={"job_type": job_type},
        bitfields={"unit_flags1": unit_flags1},
        globals={
            "world": GlobalObject("world", _ref("world")),
            "cursor": GlobalObject("cursor", _ref("coord")),
        },
        versions=[
            VersionInfo(
                version_name="v0.50.11 linux64",
                id=bytes.fromhex("1a2b3c4d5e6f708192a3b4c5d6e7f801"),
                global_addresses={"world": WORLD_ADDRESS},
                vtable_addresses={"item_weapon": WEAPON_VTABLE},
            ),
            VersionInfo(
                version_name="v0.50.11 win64",
                id=b"\x01\x02",
            ),
        ],
    )


@pytest.fixture
def version(structures) -> VersionInfo:
    return structures.version_by_name("v0.50.11 linux64")


@pytest.fixture
def abi() -> ABI:
    return ABI.from_name("linux64")


@pytest.fixture
def layout(structures, abi) -> MemoryLayout:
    return MemoryLayout(structures, abi)


@pytest.fixture
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def emitter(out) -> ReportEmitter:
    return ReportEmitter(out)


# ── On-disk corpus and document ───────────────────────────────────────────────

CORPUS_TYPES = """\
<data-definition>
  <enum-type type-name="job_type">
    <enum-item name="Dig"/>
    <enum-item name="CarveFortification"/>
    <enum-item/>
    <enum-item name="DetailWall" value="4"/>
    <enum-item name="SmoothWall"/>
  </enum-type>

  <bitfield-type type-name="unit_flags1">
    <flag-bit name="move_state"/>
    <flag-bit name="inactive"/>
    <flag-bit name="rider"/>
    <flag-bit name="caged"/>
    <flag-bit name="wide" count="2"/>
    <flag-bit name="killed"/>
  </bitfield-type>

  <struct-type type-name="coord">
    <int16_t name="x"/>
    <int16_t name="y"/>
    <int16_t name="z"/>
  </struct-type>

  <class-type type-name="base_item">
    <int32_t name="id"/>
    <virtual-methods>
      <vmethod name="getType"/>
      <vmethod name="getSubtype"/>
      <vmethod/>
      <vmethod name="moveToGround"/>
    </virtual-methods>
  </class-type>

  <class-type type-name="item_weapon" inherits-from="base_item">
    <compound name="pos" type-name="coord"/>
    <int32_t name="quality"/>
    <virtual-methods>
      <vmethod name="getWeaponSkill"/>
    </virtual-methods>
  </class-type>

  <struct-type type-name="unit">
    <comment>id, job and flags pack into the first 12 bytes</comment>
    <int32_t name="id"/>
    <enum name="job" type-name="job_type"/>
    <bitfield name="flags1" type-name="unit_flags1"/>
    <compound name="status" type-name="T_status">
      <stl-string name="name"/>
      <int8_t name="mood"/>
    </compound>
    <static-array name="counters" count="4" type-name="int32_t"/>
    <pointer name="weapon" type-name="item_weapon"/>
  </struct-type>

  <struct-type type-name="world">
    <static-array name="items" count="4">
      <pointer type-name="base_item"/>
    </static-array>
    <compound name="units" type-name="T_units">
      <pointer name="active" type-name="unit"/>
      <static-array name="all" count="3" type-name="int32_t"/>
    </compound>
    <int32_t name="frame_counter"/>
  </struct-type>

  <global-object name="world" type-name="world"/>
  <global-object name="cursor" type-name="coord"/>
</data-definition>
"""

CORPUS_SYMBOLS = """\
<data-definition>
  <symbol-table name="v0.50.11 linux64">
    <md5-hash value="1a2b3c4d5e6f708192a3b4c5d6e7f801"/>
    <global-address name="world" value="0x1c2b4a0"/>
    <vtable-address name="item_weapon" value="0x1f00d00"/>
  </symbol-table>
  <symbol-table name="v0.50.11 win64">
    <binary-timestamp value="0x5f6ee1b5"/>
    <global-address name="world" value="0x141c2b4a0"/>
  </symbol-table>
  <symbol-table name="v0.50.11 win32 broken">
    <md5-hash value="0102"/>
  </symbol-table>
</data-definition>
"""

LAYOUT_DOC = """\
<memory-layout>
  <!-- every entry here resolves against v0.50.11 linux64 -->
  <section name="offsets">
    <offset name="unit_job" type="unit" member="job"/>
    <offset name="status_mood" type="unit" member="status.mood"/>
    <offset name="weapon_quality" type="item_weapon" member="quality"/>
  </section>
  <section name="sizes">
    <size name="unit" type="unit"/>
    <size name="T_status" type="unit.T_status"/>
  </section>
  <section name="vmethods">
    <vmethod name="move_to_ground" type="item_weapon" method="moveToGround"/>
  </section>
  <section name="values">
    <value name="FOO" value="42"/>
    <value name="job_smooth" enum="job_type" value="SmoothWall"/>
  </section>
  <section name="globals">
    <global name="world" object="world"/>
    <global name="units_all" object="world.units.all[1]"/>
  </section>
  <section name="vtables">
    <vtable name="item_weapon" type="item_weapon"/>
  </section>
  <flag-array name="unit_flags" bitfield="unit_flags1">
    <flag name="AB" flags="move_state|inactive"/>
    <flag name="caged_mover" flags="move_state|caged"/>
  </flag-array>
</memory-layout>
"""


@pytest.fixture
def corpus_dir(tmp_path):
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    (corpus / "types.xml").write_text(CORPUS_TYPES, encoding="utf-8")
    (corpus / "symbols.xml").write_text(CORPUS_SYMBOLS, encoding="utf-8")
    return corpus


@pytest.fixture
def layout_xml(tmp_path):
    path = tmp_path / "memory-layout.xml"
    path.write_text(LAYOUT_DOC, encoding="utf-8")
    return path
