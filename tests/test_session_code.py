import re

import pytest

from session_code import CodeGenerator, codes_match, normalize_code


def test_generated_code_has_prefix_and_hex_suffix():
    code = CodeGenerator().generate()
    assert re.fullmatch(r"SCP-[0-9A-F]{6}", code)


def test_suffix_length_follows_byte_count():
    code = CodeGenerator(prefix="ROOM-", suffix_bytes=5).generate()
    assert code.startswith("ROOM-")
    assert len(code) == len("ROOM-") + 10


def test_codes_are_not_constant():
    generator = CodeGenerator()
    assert len({generator.generate() for _ in range(50)}) > 1


def test_rejects_suffix_below_24_bits():
    with pytest.raises(ValueError):
        CodeGenerator(suffix_bytes=2)


@pytest.mark.parametrize("candidate", ["SCP-ABC123", "scp-abc123", "  SCP-AbC123\n"])
def test_codes_match_trims_and_ignores_case(candidate):
    assert codes_match(candidate, "SCP-ABC123")


@pytest.mark.parametrize("candidate", ["SCP-ABC124", "", "WRONG", None, 123])
def test_codes_match_rejects_other_values(candidate):
    assert not codes_match(candidate, "SCP-ABC123")


def test_normalize_code():
    assert normalize_code(" scp-00ff ") == "SCP-00FF"
