import pytest

from uorclient.examples import Example, format_examples


@pytest.mark.parametrize(
    "examples, expected",
    [
        ([], ""),
        (
            [Example(["This is a test."], "test", "subcommand")],
            "  # This is a test.\n  test subcommand",
        ),
        (
            [Example(["This is a test.", "The default is false"], "test", "subcommand")],
            "  # This is a test.\n  # The default is false\n  test subcommand",
        ),
        (
            [
                Example(["This is a test."], "test", "subcommand"),
                Example(["This is a test with a flag."], "test", "subcommand --flag"),
            ],
            "  # This is a test.\n  test subcommand\n  \n"
            "  # This is a test with a flag.\n  test subcommand --flag",
        ),
    ],
)
def test_format_examples(examples, expected):
    assert format_examples(*examples) == expected


def test_example_str():
    example = Example(["first", "second"], "tool", "run --x")
    assert str(example) == "# first\n# second\n tool run --x"