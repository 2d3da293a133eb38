"""Tests for build configuration reading."""

import pytest
from pathlib import Path

from blasprobe.lib.build_config import (
    BuildConfig,
    BuildConfigReader,
    read_build_config,
    split_declaration,
)
from blasprobe.lib.errors import MalformedConfigLineError
from blasprobe.lib.link_flags import LinkInfo

DATA_DIR = Path(__file__).parent / "data"


class TestGeneratedConfigs:
    """Test configs as written by the native build."""

    def test_detail_from_makefile_conf(self):
        """Test a Fortran-enabled build configuration."""
        conf = read_build_config(DATA_DIR / "Makefile.conf")

        assert conf.os_name == "Linux"
        assert conf.fortran_enabled
        assert conf.c_link_info.libs == ("c",)
        assert conf.f_link_info.libs == ("c", "gfortran", "m", "quadmath")
        assert conf.get("CORE") == "HASWELL"
        assert conf.get("NUM_CORES") == "12"

    def test_detail_from_nofortran_conf(self):
        """Test a build configured without Fortran."""
        conf = read_build_config(DATA_DIR / "nofortran.conf")

        assert not conf.fortran_enabled
        assert conf.f_link_info.is_empty()

    def test_search_paths_exist(self):
        """Test every reported search path is canonical and exists."""
        conf = read_build_config(DATA_DIR / "Makefile.conf")

        for path in conf.c_link_info.search_paths + conf.f_link_info.search_paths:
            assert path.is_absolute()
            assert path.exists()
            assert ".." not in path.parts


class TestKeys:
    """Test recognized and unrecognized keys."""

    def test_recognized_keys(self, tmp_path):
        """Test OSNAME, NOFORTRAN and CEXTRALIB."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("OSNAME=Linux\nNOFORTRAN=1\nCEXTRALIB=-lc\n")

        conf = read_build_config(conf_file)

        assert conf.os_name == "Linux"
        assert conf.fortran_enabled is False
        assert conf.c_link_info.libs == ("c",)

    def test_fortran_enabled_by_default(self, tmp_path):
        """Test missing NOFORTRAN means Fortran is enabled."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("OSNAME=Darwin\n")

        conf = read_build_config(conf_file)

        assert conf.fortran_enabled is True
        assert BuildConfig().fortran_enabled is True

    def test_nofortran_value_ignored(self, tmp_path):
        """Test NOFORTRAN disables Fortran whatever its value."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("NOFORTRAN=0\n")

        assert read_build_config(conf_file).fortran_enabled is False

    def test_fextralib(self, tmp_path):
        """Test FEXTRALIB goes through the linker flag parser."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text(f"FEXTRALIB=-L{tmp_path} -L/no/such/dir -lgfortran -lm -lm\n")

        conf = read_build_config(conf_file)

        assert conf.f_link_info.search_paths == (tmp_path.resolve(),)
        assert conf.f_link_info.libs == ("gfortran", "m")
        assert conf.c_link_info.is_empty()

    def test_keys_case_sensitive(self, tmp_path):
        """Test keys only match exactly."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("osname=Linux\nNoFortran=1\n")

        conf = read_build_config(conf_file)

        assert conf.os_name == ""
        assert conf.fortran_enabled is True
        assert conf.get("osname") == "Linux"

    def test_immutable_and_hashable(self):
        """Test parsed configs cannot be changed and can be hashed."""
        conf = read_build_config(DATA_DIR / "Makefile.conf")

        with pytest.raises(AttributeError):
            conf.entries.append(("CORE", "ZEN"))
        with pytest.raises(AttributeError):
            conf.f_link_info.libs.append("blas")
        assert conf.get("CORE") == "HASWELL"
        assert hash(conf) == hash(read_build_config(DATA_DIR / "Makefile.conf"))
        assert hash(BuildConfig()) == hash(BuildConfig())

    def test_last_value_wins(self, tmp_path):
        """Test a repeated key keeps its last value."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("CORE=HASWELL\nARCH=x86_64\nCORE=ZEN\n")

        conf = read_build_config(conf_file)

        assert conf.entries == (("CORE", "ZEN"), ("ARCH", "x86_64"))
        assert conf.get("CORE") == "ZEN"
        assert conf.get("BINARY32", "") == ""

    def test_empty_file(self, tmp_path):
        """Test an empty file gives the defaults."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("")

        assert read_build_config(conf_file) == BuildConfig()


class TestMalformedLines:
    """Test lines that are skipped instead of failing the parse."""

    def test_malformed_lines_skipped(self, tmp_path):
        """Test lines without exactly one '=' are skipped."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text(
            "# generated\n"
            "\n"
            "OSNAME=Linux\n"
            "CEXTRALIB=-lc=broken\n"
            "ifeq ($(ARCH), x86_64)\n"
            "NOFORTRAN=1\n"
        )

        reader = BuildConfigReader(conf_file)
        conf = reader.read()

        assert conf.os_name == "Linux"
        assert conf.fortran_enabled is False
        assert conf.c_link_info.is_empty()
        assert reader.skipped_lines == [
            (1, "malformed"),
            (4, "malformed"),
            (5, "malformed"),
        ]

    def test_undecodable_line_skipped(self, tmp_path):
        """Test an invalid UTF-8 line does not abort the parse."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_bytes(b"OSNAME=Linux\nCORE=\xff\xfe\nCEXTRALIB=-lc\n")

        reader = BuildConfigReader(conf_file)
        conf = reader.read()

        assert conf.os_name == "Linux"
        assert conf.c_link_info.libs == ("c",)
        assert conf.get("CORE") is None
        assert reader.skipped_lines == [(2, "undecodable")]

    def test_skipped_lines_replaced_after_read(self, tmp_path, monkeypatch):
        """Test skipped lines are published only once a read completes."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_text("CEXTRALIB=-lc\n# a\n# b\n")
        reader = BuildConfigReader(conf_file)
        reader.read()

        seen_during_read = []
        original_parse = LinkInfo.parse.__func__

        def observing_parse(cls, flags):
            seen_during_read.append(list(reader.skipped_lines))
            return original_parse(cls, flags)

        monkeypatch.setattr(LinkInfo, "parse", classmethod(observing_parse))
        conf_file.write_text("# generated\nCEXTRALIB=-lc\n")
        reader.read()

        assert seen_during_read == [[(2, "malformed"), (3, "malformed")]]
        assert reader.skipped_lines == [(1, "malformed")]

    def test_crlf_line_endings(self, tmp_path):
        """Test Windows line endings are stripped."""
        conf_file = tmp_path / "Makefile.conf"
        conf_file.write_bytes(b"OSNAME=WINNT\r\nCEXTRALIB=-lc\r\n")

        conf = read_build_config(conf_file)

        assert conf.os_name == "WINNT"
        assert conf.c_link_info.libs == ("c",)

    def test_split_declaration(self):
        """Test the KEY=VALUE splitter."""
        assert split_declaration(1, "ARCH=x86_64") == ("ARCH", "x86_64")
        assert split_declaration(1, "BINARY32=") == ("BINARY32", "")

        with pytest.raises(MalformedConfigLineError) as exc_info:
            split_declaration(7, "A=B=C")
        assert exc_info.value.line_number == 7
        assert isinstance(exc_info.value, ValueError)


class TestFileErrors:
    """Test missing and unreadable files."""

    def test_missing_file(self, tmp_path):
        """Test a missing config file is reported."""
        with pytest.raises(FileNotFoundError):
            read_build_config(tmp_path / "Makefile.conf")

    def test_directory_is_not_readable(self, tmp_path):
        """Test reading a directory surfaces the OS error."""
        with pytest.raises(OSError):
            read_build_config(tmp_path)
