"""Tests for the Slurm CLI line grammars."""

import pytest

from slurm_cli_exporter.slurmcli import parsers

# ---------------------------------------------------------------------------
# parse_float
# ---------------------------------------------------------------------------


def test_parse_float_number():
    """Numeric text is parsed as a float."""
    assert parsers.parse_float("12", "cpus") == 12.0


def test_parse_float_non_numeric_returns_zero():
    """Non-numeric text degrades to zero instead of raising."""
    assert parsers.parse_float("N/A", "cpus") == 0.0


# ---------------------------------------------------------------------------
# parse_partitions
# ---------------------------------------------------------------------------


def test_parse_partitions_cpu_states():
    """The CPU state tuple is split into allocated/idle/other/total."""
    rows = parsers.parse_partitions("gpu,10/5/0/15\n")
    assert len(rows) == 1
    assert rows[0].name == "gpu"
    assert rows[0].cpus_allocated == 10.0
    assert rows[0].cpus_idle == 5.0
    assert rows[0].cpus_other == 0.0
    assert rows[0].cpus_total == 15.0


def test_parse_partitions_multiple_lines_keep_order():
    """Each line yields one row in input order."""
    rows = parsers.parse_partitions("batch,100/20/4/124\ngpu,10/5/0/15\n")
    assert [row.name for row in rows] == ["batch", "gpu"]


def test_parse_partitions_skips_lines_without_delimiter():
    """Lines without a comma are not partition lines."""
    rows = parsers.parse_partitions("PARTITION CPUS\n\ngpu,1/2/3/6\n")
    assert [row.name for row in rows] == ["gpu"]


@pytest.mark.parametrize(
    "line",
    [
        "gpu,10/5/0",
        "gpu,10/5/0/15/2",
        "gpu,",
        ",10/5/0/15",
    ],
)
def test_parse_partitions_skips_malformed_lines(line: str):
    """Wrong CPU field count or empty name drops the line."""
    assert parsers.parse_partitions(line) == []


def test_parse_partitions_non_numeric_cpu_field_is_zero():
    """A non-numeric CPU count only zeroes that field."""
    rows = parsers.parse_partitions("gpu,abc/5/0/15")
    assert rows[0].cpus_allocated == 0.0
    assert rows[0].cpus_idle == 5.0
    assert rows[0].cpus_total == 15.0


# ---------------------------------------------------------------------------
# parse_names
# ---------------------------------------------------------------------------


def test_parse_names_one_per_line():
    """Every non-empty line is a name, duplicates included."""
    assert parsers.parse_names("batch\ngpu\nbatch\n") == ["batch", "gpu", "batch"]


def test_parse_names_skips_blank_lines():
    """Empty lines are not names."""
    assert parsers.parse_names("\nnormal\n\n") == ["normal"]


def test_parse_names_empty_output():
    """Empty output yields no names."""
    assert parsers.parse_names("") == []


# ---------------------------------------------------------------------------
# parse_qos_jobs
# ---------------------------------------------------------------------------


def test_parse_qos_jobs_fields():
    """QoS and CPU count are taken from the two comma-separated fields."""
    rows = parsers.parse_qos_jobs("normal,4\nhigh,16\n")
    assert [(row.qos, row.cpus) for row in rows] == [("normal", 4.0), ("high", 16.0)]


def test_parse_qos_jobs_skips_empty_qos():
    """A job without a QoS contributes no row."""
    assert parsers.parse_qos_jobs(",4\n") == []


def test_parse_qos_jobs_skips_lines_without_delimiter():
    """Lines lacking the comma are ignored."""
    assert parsers.parse_qos_jobs("normal\n") == []


def test_parse_qos_jobs_non_numeric_cpus_is_zero():
    """Unparseable CPU counts degrade to zero."""
    rows = parsers.parse_qos_jobs("normal,many\n")
    assert rows[0].qos == "normal"
    assert rows[0].cpus == 0.0


# ---------------------------------------------------------------------------
# parse_fairshare
# ---------------------------------------------------------------------------


def test_parse_fairshare_trims_fields():
    """Fields are trimmed of surrounding whitespace."""
    rows = parsers.parse_fairshare("alice |teamA | 0.5\n")
    assert len(rows) == 1
    assert rows[0].user == "alice"
    assert rows[0].account == "teamA"
    assert rows[0].fairshare == 0.5


def test_parse_fairshare_skips_indented_lines():
    """Indented child rows are never parsed."""
    output = "alice|teamA|0.5\n  bob|teamA|0.25\n\tcarol|teamB|0.75\n"
    rows = parsers.parse_fairshare(output)
    assert [row.user for row in rows] == ["alice"]


def test_parse_fairshare_skips_short_lines():
    """Lines with fewer than three fields are ignored."""
    assert parsers.parse_fairshare("alice|teamA\n") == []


def test_parse_fairshare_skips_empty_user_or_account():
    """Rows missing the user or the account are ignored."""
    assert parsers.parse_fairshare("|teamA|0.5\nalice||0.5\n") == []


def test_parse_fairshare_non_numeric_value_is_zero():
    """A non-numeric fair-share value degrades to zero."""
    rows = parsers.parse_fairshare("alice|teamA|inf?\n")
    assert rows[0].fairshare == 0.0
