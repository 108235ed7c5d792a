from hostprep.bootstrap.host.hosts_file import render_loopback_alias, update_loopback_alias


def test_replaces_existing_alias_in_place():
    text = "127.0.0.1 localhost\n127.0.1.1 debian\n::1 localhost ip6-localhost\n"
    out = render_loopback_alias(text, "node1")
    assert out == "127.0.0.1 localhost\n127.0.1.1 node1\n::1 localhost ip6-localhost\n"


def test_appends_when_no_alias_present():
    out = render_loopback_alias("127.0.0.1 localhost", "node1")
    assert out == "127.0.0.1 localhost\n127.0.1.1 node1\n"


def test_duplicate_alias_lines_are_collapsed():
    text = "127.0.1.1 old\n127.0.0.1 localhost\n127.0.1.1 older\n"
    out = render_loopback_alias(text, "node1")
    assert out.count("127.0.1.1") == 1
    assert out.splitlines()[0] == "127.0.1.1 node1"


def test_similar_addresses_are_left_alone():
    text = "127.0.1.10 other\n"
    out = render_loopback_alias(text, "node1")
    assert "127.0.1.10 other" in out
    assert out.endswith("127.0.1.1 node1\n")


def test_update_reports_change_then_no_change(tmp_path):
    hosts = tmp_path / "hosts"
    hosts.write_text("127.0.0.1 localhost\n127.0.1.1 debian\n")
    hosts.chmod(0o640)

    assert update_loopback_alias(hosts, "node1") is True
    assert "127.0.1.1 node1" in hosts.read_text()
    assert hosts.stat().st_mode & 0o777 == 0o640

    assert update_loopback_alias(hosts, "node1") is False


def test_custom_loopback_address(tmp_path):
    hosts = tmp_path / "hosts"
    hosts.write_text("127.0.0.1 localhost\n")
    update_loopback_alias(hosts, "node1", "127.0.0.2")
    assert hosts.read_text().splitlines()[-1] == "127.0.0.2 node1"
