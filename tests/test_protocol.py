"""
Unit tests for Sans-I/O protocol layer.

These tests verify protocol logic without any HTTP mocking required.
All tests are pure - they test data transformations only.
"""

from datetime import datetime, timedelta, timezone

import pytest
from lxml import etree

from davkit.lib import error
from davkit.protocol import (
    ABSENT,
    # Types
    ActiveLock,
    DAVMethod,
    DAVRequest,
    DAVResponse,
    Depth,
    LockEntry,
    LockScope,
    MultistatusResult,
    PatchAction,
    PropertyName,
    PropertyResult,
    PropPatchOperation,
    RawValue,
    ResourceEntry,
    ResourceType,
    TypedValue,
    ValueKind,
    # Builders
    build_lock_body,
    build_propfind_body,
    build_proppatch_body,
    # Parsers
    decode_property,
    parse_lockdiscovery,
    parse_multistatus,
)
from davkit.protocol.xml_parsers import parse_status_line

DAV = "{DAV:}"


def multistatus(*responses, extra_ns=""):
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<D:multistatus xmlns:D="DAV:"%s>%s</D:multistatus>' % (extra_ns, "".join(responses))
    ).encode("utf-8")


def response(href, *propstats, status=None):
    body = "<D:href>%s</D:href>" % href
    body += "".join(propstats)
    if status:
        body += "<D:status>%s</D:status>" % status
    return "<D:response>%s</D:response>" % body


def propstat(props, status="HTTP/1.1 200 OK"):
    ret = "<D:propstat><D:prop>%s</D:prop>" % props
    if status:
        ret += "<D:status>%s</D:status>" % status
    return ret + "</D:propstat>"


class TestDAVTypes:
    """Test core DAV types."""

    def test_dav_request_immutable(self):
        """DAVRequest should be immutable (frozen dataclass)."""
        request = DAVRequest(method=DAVMethod.GET, url="https://example.com/", headers={})
        with pytest.raises(AttributeError):
            request.url = "https://other.com/"

    def test_dav_request_with_header(self):
        """with_header should return new request with added header."""
        request = DAVRequest(
            method=DAVMethod.GET,
            url="https://example.com/",
            headers={"Accept": "text/html"},
        )
        new_request = request.with_header("If", "(<urn:uuid:abc>)")

        # Original unchanged
        assert "If" not in request.headers
        assert new_request.headers["Accept"] == "text/html"
        assert new_request.headers["If"] == "(<urn:uuid:abc>)"

    def test_dav_request_with_body(self):
        request = DAVRequest(method=DAVMethod.PUT, url="https://example.com/a")
        assert request.with_body(b"data").body == b"data"
        assert request.body is None

    def test_dav_response_ok(self):
        """ok property should return True for 2xx status codes."""
        assert DAVResponse(status=200, headers={}, body=b"").ok
        assert DAVResponse(status=207, headers={}, body=b"").ok
        assert not DAVResponse(status=404, headers={}, body=b"").ok
        assert not DAVResponse(status=500, headers={}, body=b"").ok

    def test_dav_response_is_multistatus(self):
        assert DAVResponse(status=207, headers={}, body=b"").is_multistatus
        assert not DAVResponse(status=200, headers={}, body=b"").is_multistatus

    def test_dav_response_header_lookup_ignores_case(self):
        response = DAVResponse(status=200, headers={"ETag": '"1"'}, body=b"")
        assert response.header("etag") == '"1"'
        assert response.header("Lock-Token") is None

    def test_dav_response_reason(self):
        assert DAVResponse(status=423, headers={}, body=b"").reason == "Locked"
        assert DAVResponse(status=299, headers={}, body=b"").reason == "Unknown"


class TestDepth:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, Depth.ZERO),
            ("0", Depth.ZERO),
            (1, Depth.ONE),
            ("infinity", Depth.INFINITY),
            ("Infinity", Depth.INFINITY),
            (Depth.ONE, Depth.ONE),
        ],
    )
    def test_coerce(self, value, expected):
        assert Depth.coerce(value) is expected

    @pytest.mark.parametrize("value", [2, -1, "", "deep", None])
    def test_arbitrary_values_are_rejected(self, value):
        with pytest.raises(error.EncodingError):
            Depth.coerce(value)


class TestPropertyName:
    def test_from_clark(self):
        assert PropertyName.from_clark("{DAV:}getetag") == PropertyName("DAV:", "getetag")
        assert PropertyName.from_clark("{DAV:}getetag") == PropertyName.dav("getetag")

    def test_without_namespace(self):
        name = PropertyName.from_clark("plain")
        assert name.namespace is None
        assert name.clark == "plain"
        assert PropertyName.from_clark("{}plain") == name

    def test_empty_namespace_is_not_absent_namespace(self):
        with pytest.raises(error.EncodingError):
            PropertyName("", "plain")

    @pytest.mark.parametrize("text", ["{DAV:getetag", "{DAV:}", "{DAV:}a b", "{DAV:}a/b"])
    def test_invalid(self, text):
        with pytest.raises(error.EncodingError):
            PropertyName.from_clark(text)

    def test_ordering(self):
        names = [
            PropertyName("DAV:", "b"),
            PropertyName(None, "z"),
            PropertyName("DAV:", "a"),
        ]
        assert sorted(names) == [names[1], names[2], names[0]]

    def test_hashable(self):
        assert len({PropertyName.dav("a"), PropertyName("DAV:", "a")}) == 1


class TestResourceModel:
    def test_property_values(self):
        assert not ABSENT
        assert RawValue(b"<x/>")
        raw = RawValue(b'<x:a xmlns:x="urn:x">one<x:b>two</x:b></x:a>')
        assert raw.text == "onetwo"
        assert raw.element().tag == "{urn:x}a"

    def test_typed_value_equality_ignores_raw(self):
        assert TypedValue(ValueKind.ETAG, '"1"', b"<a/>") == TypedValue(ValueKind.ETAG, '"1"')

    def test_entry_is_immutable(self):
        name = PropertyName.dav("getetag")
        entry = ResourceEntry("/a", {name: PropertyResult(200)})
        with pytest.raises(TypeError):
            entry.properties[name] = PropertyResult(404)
        with pytest.raises(AttributeError):
            entry.path = "/b"

    def test_entry_equality_is_ordered(self):
        a = PropertyName.dav("a")
        b = PropertyName.dav("b")
        one = ResourceEntry("/x", {a: PropertyResult(200), b: PropertyResult(404)})
        two = ResourceEntry("/x", {a: PropertyResult(200), b: PropertyResult(404)})
        swapped = ResourceEntry("/x", {b: PropertyResult(404), a: PropertyResult(200)})
        assert one == two
        assert one != swapped

    def test_entry_is_hashable(self):
        a = PropertyName.dav("a")
        one = ResourceEntry("/x", {a: PropertyResult(200)})
        two = ResourceEntry("/x", {a: PropertyResult(200)})
        assert hash(one) == hash(two)
        assert len({one, two, ResourceEntry("/y")}) == 2
        assert hash(MultistatusResult((one,))) == hash(MultistatusResult((two,)))

    def test_entry_accessors(self):
        etag = PropertyName.dav("getetag")
        name = PropertyName.dav("displayname")
        entry = ResourceEntry(
            "/dav/docs/",
            {
                etag: PropertyResult(200, TypedValue(ValueKind.ETAG, '"abc"')),
                name: PropertyResult(404),
            },
        )
        assert entry.etag == '"abc"'
        assert entry.display_name is None
        assert entry.value("{DAV:}displayname") is ABSENT
        assert list(entry.ok_properties()) == [etag]
        assert list(entry.failed_properties()) == [name]
        assert not entry.ok
        assert entry.is_collection
        assert entry.locks == ()
        assert entry.relative_path("/dav/") == "docs/"

    def test_active_lock_timeout(self):
        lock = ActiveLock(scope=LockScope.EXCLUSIVE, depth=Depth.ZERO, timeout="Second-600")
        assert lock.timeout_seconds == 600
        assert ActiveLock(LockScope.SHARED, Depth.ZERO, timeout="Infinite").timeout_seconds is None

    def test_multistatus_result(self):
        entries = (
            ResourceEntry("/dav/", status=None),
            ResourceEntry("/dav/gone.txt", status=404),
        )
        result = MultistatusResult(entries)
        assert len(result) == 2
        assert result[1].path == "/dav/gone.txt"
        assert result.paths() == ("/dav/", "/dav/gone.txt")
        assert result.by_path("/dav") is entries[0]
        assert result.by_path("/nowhere") is None
        assert result.failures() == (entries[1],)

    def test_proppatch_operation_constructors(self):
        op = PropPatchOperation.set("{DAV:}displayname", "x")
        assert op.name == PropertyName.dav("displayname")
        assert op.action == PatchAction.SET
        assert PropPatchOperation.remove("{urn:x}y").value is None


class TestXMLBuilders:
    """Test XML building functions."""

    def test_propfind_allprop(self):
        body = build_propfind_body()
        assert body.startswith(b"<?xml")
        root = etree.fromstring(body)
        assert root.tag == DAV + "propfind"
        assert [child.tag for child in root] == [DAV + "allprop"]

    def test_propfind_propname(self):
        root = etree.fromstring(build_propfind_body(propname=True))
        assert [child.tag for child in root] == [DAV + "propname"]

    def test_propfind_propname_with_props(self):
        with pytest.raises(error.EncodingError):
            build_propfind_body(["{DAV:}getetag"], propname=True)

    def test_propfind_one_child_per_property_in_order(self):
        names = [
            "{DAV:}resourcetype",
            "{urn:example:a}first",
            "{DAV:}getetag",
            "{urn:example:b}second",
            "{http://owncloud.org/ns}fileid",
            "plain",
        ]
        root = etree.fromstring(build_propfind_body(names))
        prop = root.find(DAV + "prop")
        assert [child.tag for child in prop] == names

    def test_propfind_prefixes(self):
        body = build_propfind_body(
            ["{urn:example:a}first", "{http://owncloud.org/ns}fileid", "{urn:example:b}x"]
        )
        assert b'xmlns:ns0="urn:example:a"' in body
        assert b'xmlns:ns1="urn:example:b"' in body
        assert b"<oc:fileid/>" in body
        assert b"<D:prop>" in body

    def test_encoding_is_deterministic(self):
        names = ["{urn:z}a", "{urn:y}b", "{DAV:}getetag"]
        assert build_propfind_body(names) == build_propfind_body(names)

    def test_proppatch_blocks_in_order(self):
        ops = [
            PropPatchOperation.set("{DAV:}displayname", "New name"),
            PropPatchOperation.remove("{urn:example}color"),
            PropPatchOperation.set("{urn:example}size", "12"),
        ]
        root = etree.fromstring(build_proppatch_body(ops))
        assert root.tag == DAV + "propertyupdate"
        assert [child.tag for child in root] == [DAV + "set", DAV + "remove", DAV + "set"]
        props = [block.find(DAV + "prop") for block in root]
        assert all(len(prop) == 1 for prop in props)
        assert props[0][0].tag == DAV + "displayname"
        assert props[0][0].text == "New name"
        assert props[1][0].tag == "{urn:example}color"
        assert props[1][0].text is None
        assert props[2][0].text == "12"

    def test_proppatch_raw_value_is_sent_verbatim(self):
        raw = RawValue(b'<x:tags xmlns:x="urn:x" x:kind="list"><x:tag>one</x:tag><x:tag>two</x:tag></x:tags>')
        root = etree.fromstring(build_proppatch_body([PropPatchOperation.set("{urn:x}tags", raw)]))
        tags = root.find(".//{urn:x}tags")
        assert [t.text for t in tags] == ["one", "two"]
        assert tags.get("{urn:x}kind") == "list"

    def test_proppatch_element_value(self):
        value = etree.fromstring(b'<v xmlns="urn:x"><item>1</item></v>')
        root = etree.fromstring(build_proppatch_body([PropPatchOperation.set("{urn:x}v", value)]))
        assert root.find(".//{urn:x}v/{urn:x}item").text == "1"

    def test_proppatch_empty(self):
        with pytest.raises(error.EncodingError):
            build_proppatch_body([])

    def test_proppatch_set_and_remove_same_property(self):
        ops = [
            PropPatchOperation.set("{DAV:}displayname", "x"),
            PropPatchOperation.remove("{DAV:}displayname"),
        ]
        with pytest.raises(error.EncodingError):
            build_proppatch_body(ops)

    def test_proppatch_set_without_value(self):
        with pytest.raises(error.EncodingError):
            build_proppatch_body([PropPatchOperation(PropertyName.dav("displayname"), PatchAction.SET)])

    def test_proppatch_remove_with_value(self):
        op = PropPatchOperation(PropertyName.dav("displayname"), PatchAction.REMOVE, "x")
        with pytest.raises(error.EncodingError):
            build_proppatch_body([op])

    @pytest.mark.parametrize("value", [42, "bad\x01char", RawValue(b"<unclosed>")])
    def test_proppatch_unrepresentable_value(self, value):
        with pytest.raises(error.EncodingError):
            build_proppatch_body([PropPatchOperation.set("{urn:x}v", value)])

    def test_lock_body_exclusive(self):
        root = etree.fromstring(build_lock_body(LockScope.EXCLUSIVE, "Alice"))
        assert root.tag == DAV + "lockinfo"
        assert root.find(DAV + "lockscope/" + DAV + "exclusive") is not None
        assert root.find(DAV + "locktype/" + DAV + "write") is not None
        assert root.find(DAV + "owner").text == "Alice"

    def test_lock_body_owner_url(self):
        root = etree.fromstring(build_lock_body(LockScope.SHARED, "mailto:alice@example.com"))
        assert root.find(DAV + "lockscope/" + DAV + "shared") is not None
        assert root.find(DAV + "owner/" + DAV + "href").text == "mailto:alice@example.com"

    def test_lock_body_without_owner(self):
        root = etree.fromstring(build_lock_body())
        assert root.find(DAV + "owner") is None


class TestStatusLine:
    def test_parse(self):
        assert parse_status_line("HTTP/1.1 200 OK") == 200
        assert parse_status_line("  HTTP/1.1 424 Failed Dependency ") == 424

    @pytest.mark.parametrize("text", [None, "", "200 OK", "HTTP/1.1", "HTTP/1.1 abc", "HTTP/1.1 999 Nope"])
    def test_invalid(self, text):
        with pytest.raises(error.MalformedResponse):
            parse_status_line(text)


class TestMultistatusParser:
    """Test the 207 decoder."""

    def test_depth_one_on_collection_with_one_child(self):
        body = multistatus(
            response(
                "/dav/docs/",
                propstat("<D:resourcetype><D:collection/></D:resourcetype>"),
            ),
            response(
                "/dav/docs/report.txt",
                propstat("<D:resourcetype/><D:getcontentlength>42</D:getcontentlength>"),
            ),
        )
        result = parse_multistatus(body)
        assert len(result) == 2
        assert result.paths() == ("/dav/docs/", "/dav/docs/report.txt")
        assert result[0].is_collection
        assert result[0].resource_type.is_collection
        assert not result[1].is_collection
        assert result[1].content_length == 42

    def test_per_property_status(self):
        body = multistatus(
            response(
                "/a",
                propstat('<D:getetag>"xyz"</D:getetag>'),
                propstat("<D:displayname/>", "HTTP/1.1 404 Not Found"),
            )
        )
        result = parse_multistatus(body)
        assert len(result) == 1
        entry = result[0]
        assert entry.path == "/a"
        assert entry.status is None
        etag = entry.get("{DAV:}getetag")
        name = entry.get("{DAV:}displayname")
        assert etag.status == 200 and etag.ok
        assert etag.value == TypedValue(ValueKind.ETAG, '"xyz"')
        assert name.status == 404 and not name.ok
        assert name.value is ABSENT
        assert entry.etag == '"xyz"'
        assert not entry.ok

    def test_status_inherited_from_response(self):
        body = multistatus(
            response("/a", propstat("<D:getetag>1</D:getetag>", status=None), status="HTTP/1.1 200 OK")
        )
        entry = parse_multistatus(body)[0]
        assert entry.get("{DAV:}getetag").status == 200
        assert entry.etag == "1"

    def test_propstat_status_wins_over_response_status(self):
        body = multistatus(
            response(
                "/a",
                propstat("<D:getetag>1</D:getetag>", "HTTP/1.1 403 Forbidden"),
                status="HTTP/1.1 200 OK",
            )
        )
        assert parse_multistatus(body)[0].get("{DAV:}getetag").status == 403

    def test_no_status_anywhere_is_malformed(self):
        body = multistatus(response("/a", propstat("<D:getetag>1</D:getetag>", status=None)))
        with pytest.raises(error.MalformedResponse):
            parse_multistatus(body)

    def test_zero_responses_is_malformed(self):
        with pytest.raises(error.MalformedResponse):
            parse_multistatus(multistatus())

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"   ",
            b"<D:multistatus xmlns:D='DAV:'><D:response>",
            b"not xml at all",
            b"<?xml version='1.0'?><D:prop xmlns:D='DAV:'/>",
        ],
    )
    def test_malformed_body(self, body):
        with pytest.raises(error.MalformedResponse):
            parse_multistatus(body)

    def test_response_without_href(self):
        body = multistatus("<D:response>%s</D:response>" % propstat("<D:getetag>1</D:getetag>"))
        with pytest.raises(error.MalformedResponse):
            parse_multistatus(body)

    def test_response_without_propstat_or_status(self):
        with pytest.raises(error.MalformedResponse):
            parse_multistatus(multistatus(response("/a")))

    def test_propstat_without_prop(self):
        body = multistatus(
            "<D:response><D:href>/a</D:href><D:propstat><D:status>HTTP/1.1 200 OK</D:status></D:propstat></D:response>"
        )
        with pytest.raises(error.MalformedResponse):
            parse_multistatus(body)

    def test_status_form_with_several_hrefs(self):
        body = multistatus(
            "<D:response><D:href>/dav/a</D:href><D:href>/dav/b</D:href>"
            "<D:status>HTTP/1.1 423 Locked</D:status></D:response>",
            response("/dav/", status="HTTP/1.1 424 Failed Dependency"),
        )
        result = parse_multistatus(body)
        assert result.paths() == ("/dav/a", "/dav/b", "/dav/")
        assert [entry.status for entry in result] == [423, 423, 424]
        assert len(result.failures()) == 3

    def test_namespace_declared_on_ancestor(self):
        body = (
            b'<multistatus xmlns="DAV:" xmlns:x="urn:example">'
            b"<response><href>/a</href><propstat><prop>"
            b"<x:color>red</x:color>"
            b"</prop><status>HTTP/1.1 200 OK</status></propstat></response>"
            b"</multistatus>"
        )
        entry = parse_multistatus(body)[0]
        value = entry.value("{urn:example}color")
        assert isinstance(value, RawValue)
        assert value.text == "red"
        assert value.element().tag == "{urn:example}color"

    def test_unknown_property_is_kept_for_round_trip(self):
        body = multistatus(
            response("/a", propstat('<x:tags x:kind="list"><x:tag>one</x:tag></x:tags>')),
            extra_ns=' xmlns:x="urn:x"',
        )
        value = parse_multistatus(body)[0].value("{urn:x}tags")
        assert isinstance(value, RawValue)
        patch = build_proppatch_body([PropPatchOperation.set("{urn:x}tags", value)])
        tags = etree.fromstring(patch).find(".//{urn:x}tags")
        assert tags.get("{urn:x}kind") == "list"
        assert tags[0].text == "one"

    def test_property_without_namespace(self):
        body = multistatus(response("/a", propstat('<plain xmlns="">v</plain>')))
        entry = parse_multistatus(body)[0]
        assert PropertyName(None, "plain") in entry.properties

    def test_relative_href_is_resolved_against_request_url(self):
        body = multistatus(response("child.txt", propstat("<D:getetag>1</D:getetag>")))
        result = parse_multistatus(body, base_url="https://dav.example.com/dav/docs/")
        assert result.paths() == ("/dav/docs/child.txt",)

    def test_full_url_href_and_encoding(self):
        body = multistatus(
            response("https://dav.example.com/dav/my%20docs/", propstat("<D:getetag>1</D:getetag>"))
        )
        assert parse_multistatus(body).paths() == ("/dav/my docs/",)

    def test_collection_without_trailing_slash(self):
        body = multistatus(
            response("/dav/docs", propstat("<D:resourcetype><D:collection/></D:resourcetype>"))
        )
        assert parse_multistatus(body).paths() == ("/dav/docs/",)

    def test_xml_wrapper(self):
        inner = multistatus(response("/a", propstat("<D:getetag>1</D:getetag>")))
        inner = inner.split(b"?>", 1)[1]
        result = parse_multistatus(b"<xml>" + inner + b"</xml>")
        assert result.paths() == ("/a",)

    def test_descriptions_and_error(self):
        body = multistatus(
            "<D:response><D:href>/a</D:href>"
            "<D:propstat><D:prop><D:getetag/></D:prop>"
            "<D:status>HTTP/1.1 409 Conflict</D:status>"
            "<D:responsedescription>immutable</D:responsedescription></D:propstat>"
            "<D:error><D:cannot-modify-protected-property/></D:error>"
            "<D:responsedescription>partly failed</D:responsedescription>"
            "</D:response>",
            "<D:responsedescription>overall</D:responsedescription>",
        )
        result = parse_multistatus(body)
        entry = result[0]
        assert result.description == "overall"
        assert entry.description == "partly failed"
        assert entry.get("{DAV:}getetag").description == "immutable"
        assert b"cannot-modify-protected-property" in entry.error

    def test_duplicate_property_keeps_first(self):
        body = multistatus(
            response(
                "/a",
                propstat("<D:getetag>first</D:getetag>"),
                propstat("<D:getetag>second</D:getetag>"),
            )
        )
        assert parse_multistatus(body)[0].etag == "first"

    def test_properties_keep_document_order(self):
        body = multistatus(
            response(
                "/a",
                propstat("<D:getetag>1</D:getetag><D:displayname>A</D:displayname>"),
                propstat("<D:getcontenttype/>", "HTTP/1.1 404 Not Found"),
            )
        )
        names = list(parse_multistatus(body)[0].properties)
        assert names == [
            PropertyName.dav("getetag"),
            PropertyName.dav("displayname"),
            PropertyName.dav("getcontenttype"),
        ]

    def test_entity_is_not_expanded(self):
        body = (
            b'<?xml version="1.0"?><!DOCTYPE m [<!ENTITY e "EXPANDED">]>'
            b'<D:multistatus xmlns:D="DAV:"><D:response><D:href>/a</D:href>'
            b"<D:propstat><D:prop><D:displayname>&e;</D:displayname></D:prop>"
            b"<D:status>HTTP/1.1 200 OK</D:status></D:propstat></D:response></D:multistatus>"
        )
        entry = parse_multistatus(body)[0]
        assert entry.display_name != "EXPANDED"


class TestPropertyDecoding:
    def decode(self, xml):
        return decode_property(etree.fromstring(xml))

    def test_last_modified(self):
        value = self.decode(b'<D:getlastmodified xmlns:D="DAV:">Mon, 12 Jan 1998 09:25:56 GMT</D:getlastmodified>')
        assert value.kind == ValueKind.LAST_MODIFIED
        assert value.value == datetime(1998, 1, 12, 9, 25, 56, tzinfo=timezone.utc)

    def test_creation_date(self):
        value = self.decode(b'<D:creationdate xmlns:D="DAV:">1997-12-01T17:42:21-08:00</D:creationdate>')
        assert value.value == datetime(1997, 12, 1, 17, 42, 21, tzinfo=timezone(timedelta(hours=-8)))

    def test_creation_date_zulu(self):
        value = self.decode(b'<D:creationdate xmlns:D="DAV:">2024-03-01T10:00:00Z</D:creationdate>')
        assert value.value == datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)

    def test_content_length(self):
        value = self.decode(b'<D:getcontentlength xmlns:D="DAV:"> 1024 </D:getcontentlength>')
        assert value == TypedValue(ValueKind.CONTENT_LENGTH, 1024)

    @pytest.mark.parametrize("text", [b"abc", b"-1", b""])
    def test_bad_content_length_is_kept_raw(self, text):
        xml = b'<D:getcontentlength xmlns:D="DAV:">' + text + b"</D:getcontentlength>"
        value = self.decode(xml)
        assert isinstance(value, RawValue)
        assert value.element().tag == DAV + "getcontentlength"

    def test_bad_date_is_kept_raw(self):
        value = self.decode(b'<D:getlastmodified xmlns:D="DAV:">yesterday</D:getlastmodified>')
        assert isinstance(value, RawValue)

    def test_resourcetype(self):
        value = self.decode(
            b'<D:resourcetype xmlns:D="DAV:" xmlns:C="urn:ietf:params:xml:ns:caldav">'
            b"<D:collection/><C:calendar/></D:resourcetype>"
        )
        assert value.value == ResourceType(
            (PropertyName.dav("collection"), PropertyName("urn:ietf:params:xml:ns:caldav", "calendar"))
        )
        assert value.value.is_collection

    def test_text_properties(self):
        assert self.decode(b'<D:getcontenttype xmlns:D="DAV:">text/plain</D:getcontenttype>').value == "text/plain"
        assert self.decode(b'<D:displayname xmlns:D="DAV:">Docs</D:displayname>').value == "Docs"

    def test_supportedlock(self):
        value = self.decode(
            b'<D:supportedlock xmlns:D="DAV:">'
            b"<D:lockentry><D:lockscope><D:exclusive/></D:lockscope><D:locktype><D:write/></D:locktype></D:lockentry>"
            b"<D:lockentry><D:lockscope><D:shared/></D:lockscope><D:locktype><D:write/></D:locktype></D:lockentry>"
            b"</D:supportedlock>"
        )
        assert value.value == (LockEntry(LockScope.EXCLUSIVE), LockEntry(LockScope.SHARED))

    def test_raw_value_has_no_tail(self):
        root = etree.fromstring(b'<p xmlns:x="urn:x"><x:a>1</x:a>\n   tail</p>')
        value = decode_property(root[0])
        assert value.xml.endswith(b"</x:a>")


LOCK_RESPONSE = b"""<?xml version="1.0" encoding="utf-8"?>
<D:prop xmlns:D="DAV:">
  <D:lockdiscovery>
    <D:activelock>
      <D:locktype><D:write/></D:locktype>
      <D:lockscope><D:exclusive/></D:lockscope>
      <D:depth>infinity</D:depth>
      <D:owner><D:href>mailto:alice@example.com</D:href></D:owner>
      <D:timeout>Second-604800</D:timeout>
      <D:locktoken><D:href>urn:uuid:e71d4fae-5dec-22d6-fea5-00a0c91e6be4</D:href></D:locktoken>
      <D:lockroot><D:href>https://dav.example.com/dav/docs/</D:href></D:lockroot>
    </D:activelock>
  </D:lockdiscovery>
</D:prop>"""


class TestLockDiscovery:
    def test_parse(self):
        (lock,) = parse_lockdiscovery(LOCK_RESPONSE)
        assert lock.scope == LockScope.EXCLUSIVE
        assert lock.depth == Depth.INFINITY
        assert lock.locktype == "write"
        assert lock.owner == "mailto:alice@example.com"
        assert lock.timeout_seconds == 604800
        assert lock.token == "urn:uuid:e71d4fae-5dec-22d6-fea5-00a0c91e6be4"
        assert lock.root == "https://dav.example.com/dav/docs/"

    def test_text_owner(self):
        body = LOCK_RESPONSE.replace(
            b"<D:owner><D:href>mailto:alice@example.com</D:href></D:owner>",
            b"<D:owner>Alice</D:owner>",
        )
        assert parse_lockdiscovery(body)[0].owner == "Alice"

    def test_no_lockdiscovery(self):
        with pytest.raises(error.MalformedResponse):
            parse_lockdiscovery(b'<D:prop xmlns:D="DAV:"/>')

    @pytest.mark.parametrize(
        "old,new",
        [
            (b"<D:depth>infinity</D:depth>", b"<D:depth>2</D:depth>"),
            (b"<D:lockscope><D:exclusive/></D:lockscope>", b""),
        ],
    )
    def test_invalid_activelock(self, old, new):
        with pytest.raises(error.MalformedResponse):
            parse_lockdiscovery(LOCK_RESPONSE.replace(old, new))

    def test_lockdiscovery_in_propfind(self):
        prop = LOCK_RESPONSE.split(b"<D:prop xmlns:D=\"DAV:\">", 1)[1].rsplit(b"</D:prop>", 1)[0]
        body = multistatus(response("/dav/docs/", propstat(prop.decode())))
        (lock,) = parse_multistatus(body)[0].locks
        assert lock.token == "urn:uuid:e71d4fae-5dec-22d6-fea5-00a0c91e6be4"


class TestProppatchRoundTrip:
    def test_acknowledged_names_match_request(self):
        ops = [
            PropPatchOperation.set("{DAV:}displayname", "Report"),
            PropPatchOperation.set("{urn:example:a}color", "red"),
            PropPatchOperation.remove("{urn:example:b}obsolete"),
            PropPatchOperation.set("{http://owncloud.org/ns}favorite", "1"),
        ]
        request = etree.fromstring(build_proppatch_body(ops))

        ## The server echoes every property of the request, empty, in one propstat
        ack = etree.Element(DAV + "multistatus", nsmap={"D": "DAV:"})
        resp = etree.SubElement(ack, DAV + "response")
        etree.SubElement(resp, DAV + "href").text = "/dav/report.txt"
        ps = etree.SubElement(resp, DAV + "propstat")
        prop = etree.SubElement(ps, DAV + "prop")
        for sent in request.iter():
            if sent.getparent() is not None and sent.getparent().tag == DAV + "prop":
                etree.SubElement(prop, sent.tag)
        etree.SubElement(ps, DAV + "status").text = "HTTP/1.1 200 OK"

        (entry,) = parse_multistatus(etree.tostring(ack))
        assert set(entry.properties) == {op.name for op in ops}
        assert all(result.ok for result in entry.properties.values())
