import pytest

from connectkit.procedure import extract_proto_path


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (
            "https://api.foo.com/grpc/foo.user.v1.UserService/GetUser",
            "/foo.user.v1.UserService/GetUser",
        ),
        ("/foo.user.v1.UserService/GetUser", "/foo.user.v1.UserService/GetUser"),
        ("foo.user.v1.UserService/GetUser", "/foo.user.v1.UserService/GetUser"),
        ("/foo.user.v1.UserService.GetUser/", "/foo.user.v1.UserService.GetUser"),
        ("", "/"),
        ("//", "/"),
    ],
)
def test_parse_protobuf_url(url, expected):
    assert extract_proto_path(url) == expected


def test_single_segment():
    assert extract_proto_path("foo.v1.Service") == "/foo.v1.Service"