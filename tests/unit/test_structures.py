"""
Unit tests for memlayout.structures.

Covers:
  • parse_path / format_path
  • Structures lookups and Compound vtable queries
  • ABI selection from version names
  • MemoryLayout sizes, offsets and path errors
  • Pointer.from_global
"""

import pytest

from memlayout.exceptions import (
    CorpusError,
    GlobalNotFoundError,
    LayoutError,
    MemberNotFoundError,
    PathSyntaxError,
    UnsupportedABIError,
)
from memlayout.structures import (
    ABI,
    Compound,
    Member,
    MemberType,
    MemoryLayout,
    Pointer,
    Structures,
    TypeKind,
    VMethod,
    format_path,
    parse_path,
)

WORLD_ADDRESS = 0x1C2B4A0


# ── Path parsing ──────────────────────────────────────────────────────────────

class TestParsePath:
    def test_single_identifier(self):
        assert parse_path("unit") == ("unit",)

    def test_dotted_with_indices(self):
        assert parse_path("world.units.all[3].pos") == ("world", "units", "all", 3, "pos")

    def test_hex_index_and_whitespace(self):
        assert parse_path("  items[ 0x10 ] ") == ("items", 16)

    def test_consecutive_indices(self):
        assert parse_path("grid[1][2]") == ("grid", 1, 2)

    @pytest.mark.parametrize("text", ["", "   ", "a.", ".a", "a..b", "[1]", "a b", "a.[1]", "a-b"])
    def test_malformed_paths_raise(self, text):
        with pytest.raises(PathSyntaxError):
            parse_path(text)

    def test_format_path_round_trip(self):
        assert format_path(parse_path("world.units.all[2]")) == "world.units.all[2]"


# ── Structural model ──────────────────────────────────────────────────────────

class TestStructures:
    def test_find_compound_top_level(self, structures):
        assert structures.find_compound(("coord",)).name == "coord"

    def test_find_compound_nested(self, structures):
        assert structures.find_compound(("world", "T_units")).name == "T_units"

    def test_find_compound_unknown_returns_none(self, structures):
        assert structures.find_compound(("nope",)) is None
        assert structures.find_compound(("world", "nope")) is None
        assert structures.find_compound(("world", 1)) is None

    def test_version_by_name(self, structures):
        assert structures.version_by_name("v0.50.11 linux64") is not None
        assert structures.version_by_name("v0.50.11 osx64") is None

    def test_all_versions_preserves_order(self, structures):
        names = [v.version_name for v in structures.all_versions()]
        assert names == ["v0.50.11 linux64", "v0.50.11 win64"]

    def test_bitfield_find_flag_is_case_sensitive(self, structures):
        bitfield = structures.find_bitfield("unit_flags1")
        assert bitfield.find_flag("caged").offset == 3
        assert bitfield.find_flag("Caged") is None


class TestCompoundVtable:
    def test_inherited_slots_come_first(self, structures):
        weapon = structures.compounds["item_weapon"]
        assert weapon.method_index("getType") == 0
        assert weapon.method_index("moveToGround") == 3
        assert weapon.method_index("getWeaponSkill") == 4

    def test_unknown_method_returns_minus_one(self, structures):
        assert structures.compounds["item_weapon"].method_index("fly") == -1

    def test_unnamed_slot_is_never_matched(self, structures):
        assert structures.compounds["base_item"].method_index("") == -1

    def test_has_vtable_through_parent(self, structures):
        assert structures.compounds["item_weapon"].has_vtable()
        assert not structures.compounds["coord"].has_vtable()


# ── ABI ───────────────────────────────────────────────────────────────────────

class TestABI:
    @pytest.mark.parametrize("version_name, name, pointer_size", [
        ("v0.50.11 linux64", "linux64", 8),
        ("v0.47.05 win32 SDL", "win32", 4),
        ("v0.47.05 win64 STEAM", "win64", 8),
        ("v0.34.11 SDL osx32", "osx32", 4),
    ])
    def test_from_version_name(self, version_name, name, pointer_size):
        abi = ABI.from_version_name(version_name)
        assert abi.name == name
        assert abi.pointer_size == pointer_size

    def test_unknown_platform_raises(self):
        with pytest.raises(UnsupportedABIError):
            ABI.from_version_name("v0.50.11 amiga")

    def test_unknown_name_raises(self):
        with pytest.raises(UnsupportedABIError):
            ABI.from_name("vax")

    def test_long_size_differs_between_windows_and_linux(self):
        assert ABI.from_name("win64").primitive("long") == (4, 4)
        assert ABI.from_name("linux64").primitive("long") == (8, 8)

    def test_int64_alignment_on_linux32(self):
        assert ABI.from_name("linux32").primitive("int64_t") == (8, 4)


# ── Layout ────────────────────────────────────────────────────────────────────

class TestMemoryLayout:
    def test_plain_struct_size(self, structures, layout):
        info = layout.type_info[structures.compounds["coord"]]
        assert (info.size, info.align) == (6, 2)

    def test_vtable_pointer_comes_first(self, structures, layout):
        base = structures.compounds["base_item"]
        assert layout.get_offset(base, ("id",))[1] == 8
        assert layout.type_info[base].size == 16

    def test_derived_members_follow_base(self, structures, layout):
        weapon = structures.compounds["item_weapon"]
        assert layout.get_offset(weapon, ("pos",))[1] == 16
        assert layout.get_offset(weapon, ("quality",))[1] == 24
        assert layout.type_info[weapon].size == 32

    def test_inherited_member(self, structures, layout):
        weapon = structures.compounds["item_weapon"]
        member_type, offset = layout.get_offset(weapon, ("id",))
        assert offset == 8
        assert member_type.name == "int32_t"

    def test_nested_member_and_array_index(self, structures, layout):
        world = structures.compounds["world"]
        member_type, offset = layout.get_offset(world, parse_path("units.all[2]"))
        assert offset == 32 + 8 + 2 * 4
        assert member_type.kind == TypeKind.PRIMITIVE

    def test_nested_type_is_laid_out(self, structures, layout):
        t_units = structures.find_compound(("world", "T_units"))
        assert layout.type_info[t_units].size == 24
        assert layout.type_info[structures.compounds["world"]].size == 64

    def test_win32_layout_uses_4_byte_pointers(self, structures):
        layout = MemoryLayout(structures, ABI.from_name("win32"))
        base = structures.compounds["base_item"]
        assert layout.get_offset(base, ("id",))[1] == 4
        assert layout.type_info[base].size == 8

    def test_unknown_member_raises(self, structures, layout):
        with pytest.raises(MemberNotFoundError):
            layout.get_offset(structures.compounds["coord"], ("w",))

    def test_crossing_a_pointer_raises(self, structures, layout):
        with pytest.raises(LayoutError):
            layout.get_offset(structures.compounds["world"], parse_path("units.active.id"))

    def test_indexing_a_scalar_raises(self, structures, layout):
        with pytest.raises(LayoutError):
            layout.get_offset(structures.compounds["world"], parse_path("frame_counter[0]"))

    def test_index_out_of_bounds_raises(self, structures, layout):
        with pytest.raises(LayoutError):
            layout.get_offset(structures.compounds["world"], parse_path("units.all[3]"))

    def test_union_members_share_offset_zero(self):
        union = Compound(
            name="u",
            is_union=True,
            members=[
                Member("a", MemberType(TypeKind.PRIMITIVE, name="int8_t")),
                Member("b", MemberType(TypeKind.PRIMITIVE, name="int64_t")),
            ],
        )
        layout = MemoryLayout(Structures(compounds={"u": union}), ABI.from_name("linux64"))
        assert layout.get_offset(union, ("b",))[1] == 0
        assert layout.type_info[union].size == 8

    def test_anonymous_compound_members_are_reachable(self):
        inner = Compound(name="", members=[
            Member("flag", MemberType(TypeKind.PRIMITIVE, name="int32_t")),
        ])
        outer = Compound(name="outer", members=[
            Member("head", MemberType(TypeKind.PRIMITIVE, name="int8_t")),
            Member("", MemberType(TypeKind.COMPOUND, compound=inner)),
        ])
        layout = MemoryLayout(Structures(compounds={"outer": outer}), ABI.from_name("linux64"))
        assert layout.get_offset(outer, ("flag",))[1] == 4

    def test_vtable_pointer_precedes_non_polymorphic_base(self):
        base = Compound(name="plain", members=[
            Member("x", MemberType(TypeKind.PRIMITIVE, name="int32_t")),
        ])
        derived = Compound(name="derived", parent_name="plain", parent=base,
                           vmethods=[VMethod("f")])
        structures = Structures(compounds={"plain": base, "derived": derived})
        layout = MemoryLayout(structures, ABI.from_name("linux64"))
        assert layout.get_offset(derived, ("x",))[1] == 8
        assert layout.type_info[derived].size == 16
        assert layout.get_offset(base, ("x",))[1] == 0

    def test_polymorphic_base_supplies_the_vtable_pointer(self):
        base = Compound(name="poly", vmethods=[VMethod("f")], members=[
            Member("x", MemberType(TypeKind.PRIMITIVE, name="int32_t")),
        ])
        derived = Compound(name="derived", parent_name="poly", parent=base,
                           vmethods=[VMethod("g")])
        structures = Structures(compounds={"poly": base, "derived": derived})
        layout = MemoryLayout(structures, ABI.from_name("linux64"))
        assert layout.get_offset(derived, ("x",))[1] == 8
        assert layout.type_info[derived].size == 16

    def test_empty_compound_has_size_one(self):
        empty = Compound(name="empty")
        layout = MemoryLayout(Structures(compounds={"empty": empty}), ABI.from_name("linux64"))
        assert layout.type_info[empty].size == 1

    def test_self_containing_compound_is_a_corpus_error(self):
        loop = Compound(name="loop")
        loop.members.append(Member("again", MemberType(TypeKind.COMPOUND, name="loop")))
        with pytest.raises(CorpusError):
            MemoryLayout(Structures(compounds={"loop": loop}), ABI.from_name("linux64"))


# ── Pointer ───────────────────────────────────────────────────────────────────

class TestPointer:
    def test_global_base_address(self, structures, version, layout):
        ptr = Pointer.from_global(structures, version, layout, ("world",))
        assert ptr.address == WORLD_ADDRESS

    def test_global_member_address(self, structures, version, layout):
        ptr = Pointer.from_global(structures, version, layout, parse_path("world.frame_counter"))
        assert ptr.address == WORLD_ADDRESS + 56

    def test_unknown_global_raises(self, structures, version, layout):
        with pytest.raises(GlobalNotFoundError):
            Pointer.from_global(structures, version, layout, ("gview",))

    def test_global_without_address_in_version_raises(self, structures, version, layout):
        with pytest.raises(GlobalNotFoundError):
            Pointer.from_global(structures, version, layout, ("cursor",))
