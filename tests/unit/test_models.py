"""Unit tests for Pydantic models."""

from txthook.models import (
    Challenge,
    Domain,
    DomainPage,
    HookOperation,
    RecordPage,
    RecordType,
    TxtRecordCreate,
    ZoneMatch,
)


class TestHookOperation:
    def test_values_match_hook_protocol(self):
        assert HookOperation.DEPLOY_CHALLENGE == "deploy_challenge"
        assert HookOperation.CLEAN_CHALLENGE == "clean_challenge"
        assert HookOperation.EXIT_HOOK == "exit_hook"

    def test_all_operations(self):
        assert {op.value for op in HookOperation} == {
            "deploy_challenge",
            "clean_challenge",
            "sync_cert",
            "deploy_cert",
            "deploy_ocsp",
            "unchanged_cert",
            "invalid_challenge",
            "request_failure",
            "generate_csr",
            "startup_hook",
            "exit_hook",
        }


class TestPages:
    def test_domain_page_parses_linode_response(self):
        page = DomainPage.model_validate(
            {
                "data": [
                    {
                        "id": 1234,
                        "domain": "example.org",
                        "type": "master",
                        "status": "active",
                        "soa_email": "admin@example.org",
                        "tags": [],
                    }
                ],
                "page": 1,
                "pages": 3,
                "results": 1,
            }
        )

        assert page.pages == 3
        assert page.data[0].id == 1234
        assert page.data[0].domain == "example.org"
        assert set(type(page.data[0]).model_fields) == {"id", "domain"}

    def test_record_page_defaults(self):
        page = RecordPage.model_validate({"data": []})

        assert page.page == 1
        assert page.pages == 1
        assert page.data == []


class TestTxtRecordCreate:
    def test_dump(self):
        body = TxtRecordCreate(name="_acme-challenge.www", target="abc", ttl_sec=300)

        assert body.model_dump(mode="json") == {
            "type": "TXT",
            "name": "_acme-challenge.www",
            "target": "abc",
            "ttl_sec": 300,
        }

    def test_dump_without_ttl(self):
        body = TxtRecordCreate(name="_acme-challenge", target="abc")

        assert body.model_dump(mode="json", exclude_none=True) == {
            "type": RecordType.TXT.value,
            "name": "_acme-challenge",
            "target": "abc",
        }


class TestZoneMatch:
    def test_apex_record_name(self):
        match = ZoneMatch(zone=Domain(id=1, domain="example.com"), subdomain="")

        assert match.challenge_record_name == "_acme-challenge"

    def test_subdomain_record_name(self):
        match = ZoneMatch(zone=Domain(id=1, domain="example.com"), subdomain="a.b")

        assert match.challenge_record_name == "_acme-challenge.a.b"


class TestChallenge:
    def test_fqdn(self):
        challenge = Challenge(domain="example.com", token_filename="f", token_value="v")

        assert challenge.fqdn == "_acme-challenge.example.com"
