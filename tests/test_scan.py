from post_image_downloader.models import Document
from post_image_downloader.scan import RELATIVE_PATHS_KEY, format_host_report, scan_image_hosts


def test_scan_groups_hosts_and_relative_paths() -> None:
    docs = [
        Document(1, '<img src="https://cdn.a/x.jpg">'),
        Document(2, '<img src="/rel/y.jpg">'),
    ]
    assert scan_image_hosts(docs) == {"cdn.a": [1], "relative URL paths": [2]}


def test_scan_lists_each_document_once_per_host() -> None:
    docs = [
        Document(1, '<img src="https://cdn.a/x.jpg"><img src="https://cdn.a/z.jpg"><img src="https://b.test/q.png">'),
        Document(4, '<img src="https://cdn.a/x.jpg"><img src="data:image/png;base64,AAAA">'),
        Document(6, "<p>no images</p>"),
    ]
    assert scan_image_hosts(docs) == {
        "cdn.a": [1, 4],
        "b.test": [1],
        RELATIVE_PATHS_KEY: [4],
    }


def test_report_lines() -> None:
    hosts = {"cdn.a": [1, 4], RELATIVE_PATHS_KEY: [2]}

    assert format_host_report(hosts) == [
        "Found 2 total image hosts:",
        "- cdn.a",
        "- relative URL paths",
    ]
    assert format_host_report(hosts, list_all_post_ids=True) == [
        "Found 2 total image hosts:",
        "- cdn.a -- in IDs: 1,4",
        "- relative URL paths -- in IDs: 2",
    ]
    assert format_host_report({}) == ["Found 0 total image hosts."]
