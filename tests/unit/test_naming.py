"""Unit tests for session name derivation."""

import itertools
from unittest.mock import patch

import pytest

from tmsession.core.naming import (
    clean_session_name,
    local_hostname,
    session_name_for,
    unique_session_name,
)
from tmsession.utils.logging import TmuxError


class TestCleanSessionName:
    """Test cases for clean_session_name."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("plain", "plain"),
            ("with space", "withspace"),
            ("host:22", "host22"),
            ('"quoted"', "quoted"),
            ("it's", "its"),
            ("web1.example.com", "web1_example_com"),
            ("a. b:c'd\"e", "a_bcde"),
        ],
    )
    def test_clean(self, raw, expected):
        """Test disallowed characters are dropped and dots replaced."""
        assert clean_session_name(raw) == expected

    @pytest.mark.parametrize(
        "raw", ["web1.example.com", "a b:c", "'x'.\"y\"", "", "_._"]
    )
    def test_clean_is_idempotent(self, raw):
        """Test cleaning twice equals cleaning once."""
        once = clean_session_name(raw)
        assert clean_session_name(once) == once

    def test_clean_leaves_no_forbidden_characters(self):
        """Test the result never contains spaces, colons, quotes or dots."""
        cleaned = clean_session_name("a.b c:d'e\"f.g")
        for forbidden in " :'\".":
            assert forbidden not in cleaned


class TestSessionNameFor:
    """Test cases for session_name_for."""

    def test_example_with_hostname_prefix(self):
        """Test the s-mode name on a machine called box."""
        name = session_name_for("s", ["host-a", "host-b"], host_prefix="box")
        assert name == "box_s_host-a_host-b"

    def test_sorted_name_invariant_under_permutation(self):
        """Test sorted names do not depend on host order."""
        hosts = ["web3", "db1", "web1", "cache.example.org"]
        names = {
            session_name_for("ms", list(order), sort=True)
            for order in itertools.permutations(hosts)
        }
        assert names == {"ms_cache_example_org_db1_web1_web3"}

    def test_unsorted_name_follows_host_order(self):
        """Test unsorted names are sensitive to host order."""
        first = session_name_for("s", ["b", "a"], sort=False)
        second = session_name_for("s", ["a", "b"], sort=False)
        assert first == "s_b_a"
        assert second == "s_a_b"
        assert first != second

    def test_mode_tag_is_not_sorted(self):
        """Test the mode tag stays in front even when it sorts later."""
        assert session_name_for("s", ["a", "b"], sort=True) == "s_a_b"
        assert session_name_for("ms", ["zz", "aa"], sort=True) == "ms_aa_zz"

    def test_sorting_removes_duplicates(self):
        """Test duplicate hosts collapse when sorting."""
        assert session_name_for("s", ["a", "b", "a"], sort=True) == "s_a_b"
        assert session_name_for("s", ["a", "b", "a"], sort=False) == "s_a_b_a"

    def test_empty_host_list(self):
        """Test an empty host list yields a degenerate name."""
        assert session_name_for("s", [], host_prefix="box") == "box_s"

    def test_name_is_cleaned(self):
        """Test hosts with dots and colons give a clean name."""
        name = session_name_for("s", ["user@web1.example.com:2222"], sort=True)
        assert name == "s_user@web1_example_com2222"


class TestUniqueSessionName:
    """Test cases for unique_session_name."""

    def test_free_name_is_kept(self):
        """Test a free name is returned unchanged."""
        assert unique_session_name("s_a", lambda name: False, pid=99) == "s_a"

    def test_taken_name_gets_pid_prefix(self):
        """Test a taken name is prefixed with the process id."""
        taken = {"s_a"}
        assert unique_session_name("s_a", taken.__contains__, pid=1234) == "1234_s_a"

    def test_prefixed_name_taken(self):
        """Test a clear error when the prefixed name is taken too."""
        taken = {"s_a", "1234_s_a"}
        with pytest.raises(TmuxError, match="1234_s_a"):
            unique_session_name("s_a", taken.__contains__, pid=1234)

    def test_defaults_to_own_pid(self):
        """Test the current process id is used when none is given."""
        with patch("tmsession.core.naming.os.getpid", return_value=77):
            assert unique_session_name("x", lambda name: name == "x") == "77_x"


def test_local_hostname_is_short():
    """Test only the first label of the hostname is used."""
    with patch("tmsession.core.naming.socket.gethostname", return_value="box.example.com"):
        assert local_hostname() == "box"
