"""Property-based tests for input validation."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from serverops.config import DEFAULT_PORT, resolve_port
from serverops.errors import ServerOpsError, validate_status_code
from serverops.server.middleware import path_matches

segment = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=8)


@pytest.mark.property
@pytest.mark.unit
class TestStatusCodeProperties:
    """Status codes are either kept verbatim or replaced by 500."""

    @given(code=st.integers(min_value=100, max_value=599))
    def test_valid_range_kept(self, code: int) -> None:
        assert validate_status_code(code) == code

    @given(code=st.integers().filter(lambda c: c < 100 or c > 599))
    def test_out_of_range_is_500(self, code: int) -> None:
        assert validate_status_code(code) == 500

    @given(value=st.one_of(st.none(), st.floats(), st.text(), st.booleans()))
    def test_non_integers_are_500(self, value) -> None:
        assert ServerOpsError("x", value).status_code == 500

    @given(message=st.text())
    def test_message_round_trips(self, message: str) -> None:
        err = ServerOpsError(message, 404)
        assert err.to_dict() == {"error": {"message": message}}


@pytest.mark.property
@pytest.mark.unit
class TestPortProperties:
    """Ports resolve to a valid number or the default."""

    @given(port=st.integers(min_value=0, max_value=65535))
    def test_valid_ports(self, port: int) -> None:
        assert resolve_port(port) == port
        assert resolve_port(str(port)) == port

    @given(value=st.text())
    def test_any_text_resolves(self, value: str) -> None:
        assert 0 <= resolve_port(value) <= 65535

    @given(port=st.integers().filter(lambda p: p < 0 or p > 65535))
    def test_out_of_range_default(self, port: int) -> None:
        assert resolve_port(port) == DEFAULT_PORT


@pytest.mark.property
@pytest.mark.unit
class TestPathMatchProperties:
    """Prefix matching follows path segment boundaries."""

    @given(prefix=st.lists(segment, min_size=1, max_size=3), rest=st.lists(segment, max_size=3))
    def test_nested_paths_match(self, prefix: list[str], rest: list[str]) -> None:
        base = "/" + "/".join(prefix)
        path = "/".join([base, *rest])
        assert path_matches(path, base)

    @given(prefix=st.lists(segment, min_size=1, max_size=3), suffix=segment)
    def test_sibling_paths_do_not_match(self, prefix: list[str], suffix: str) -> None:
        base = "/" + "/".join(prefix)
        assert not path_matches(base + suffix, base)
