import os
import xml.etree.ElementTree as ET

import pytest

from api_client.infrastructure.xml_attribute_document import XmlAttributeDocument


def test_get_returns_value_or_none(config_file):
    document = XmlAttributeDocument.load(config_file)

    assert document.get("ApiClient.ClientId") == "client-123"
    assert document.get("ApiClient.AccessToken") == ""
    assert document.get("Unknown.Key") is None


def test_set_updates_existing_and_appends_missing_entries():
    document = XmlAttributeDocument.from_string('<configuration><add key="a" value="1" /></configuration>')

    document.set("a", "2")
    document.set("b", "3")

    assert document.get("a") == "2"
    assert document.get("b") == "3"
    assert list(document.keys()) == ["a", "b"]
    root = ET.fromstring(document.to_string())
    assert [(e.get("key"), e.get("value")) for e in root.findall("add")] == [("a", "2"), ("b", "3")]


def test_save_preserves_unknown_content(config_file):
    document = XmlAttributeDocument.load(config_file)
    document.set("ApiClient.AccessToken", "new-token")

    document.save(config_file)

    text = config_file.read_text(encoding="utf-8")
    assert "API client credentials" in text
    root = ET.parse(str(config_file)).getroot()
    sandbox = [e for e in root.findall("add") if e.get("key") == "Vendor.Sandbox"][0]
    assert sandbox.attrib == {"key": "Vendor.Sandbox", "value": "true", "note": "keep me"}
    assert root.find("logging").attrib == {"level": "debug"}
    assert XmlAttributeDocument.load(config_file).get("ApiClient.AccessToken") == "new-token"


def test_save_leaves_no_temporary_files(config_file):
    XmlAttributeDocument.load(config_file).save(config_file)

    assert sorted(p.name for p in config_file.parent.iterdir()) == ["apiclient.config"]


def test_save_into_missing_directory_raises_os_error(tmp_path):
    document = XmlAttributeDocument.from_string("<configuration />")

    with pytest.raises(OSError):
        document.save(tmp_path / "gone" / "apiclient.config")


def test_load_malformed_document_raises_parse_error(tmp_path):
    path = tmp_path / "apiclient.config"
    path.write_text("<configuration><add key=", encoding="utf-8")

    with pytest.raises(ET.ParseError):
        XmlAttributeDocument.load(path)


@pytest.mark.skipif(os.name == "nt", reason="POSIX file permissions only")
def test_save_sets_owner_only_permissions(config_file):
    XmlAttributeDocument.load(config_file).save(config_file)

    mode = config_file.stat().st_mode & 0o777
    assert mode == 0o600


def test_to_string_keeps_declared_prefixes():
    document = XmlAttributeDocument.from_string(
        '<configuration xmlns:xdt="http://schemas.microsoft.com/XML-Document-Transform">'
        '<add key="a" value="1" xdt:Transform="Replace" />'
        "</configuration>"
    )
    document.set("a", "2")

    text = document.to_string()

    assert 'xdt:Transform="Replace"' in text
    assert "ns0:" not in text
    assert document.get("a") == "2"
