import pytest

from worker_kit import orchestrator
from worker_kit.config import DeployTarget, KvNamespace, Site
from worker_kit.errors import FilesystemError, MissingFieldsError, RemoteError


UPLOAD = "accounts/A/workers/scripts/S"
SUBDOMAIN = "accounts/A/workers/subdomain"
ENABLE = "accounts/A/workers/scripts/S/subdomain"
ROUTES = "zones/Z/workers/routes"
NAMESPACES = "accounts/A/storage/kv/namespaces"


def test_publish_to_subdomain_end_to_end(fake_session, settings, script_file) -> None:
    target = DeployTarget(account_id="A", name="S", workers_dev=True, script_path=script_file)
    fake_session.on("PUT", UPLOAD, result={"id": "S"})
    fake_session.on("GET", SUBDOMAIN, result={"subdomain": "foo"})
    fake_session.on("POST", ENABLE, result=None)

    result = orchestrator.publish(fake_session, settings, target)

    assert result.pattern == "https://S.foo.workers.dev"
    assert result.message == "Successfully published your script to https://S.foo.workers.dev"
    assert "https://S.foo.workers.dev" in result.summary()


def test_publish_to_route_end_to_end(fake_session, settings, script_file) -> None:
    target = DeployTarget(
        account_id="A",
        name="S",
        workers_dev=False,
        zone_id="Z",
        route="example.com/*",
        script_path=script_file,
    )
    fake_session.on("PUT", UPLOAD, result={"id": "S"})
    fake_session.on("GET", ROUTES, result=[])
    fake_session.on("POST", ROUTES, result={"id": "r1"})

    result = orchestrator.publish(fake_session, settings, target)

    assert result.pattern == "example.com/*"
    assert len(fake_session.calls_to("POST", ROUTES)) == 1
    assert fake_session.calls_to("GET", SUBDOMAIN) == []


def test_upload_failure_aborts_before_exposure(fake_session, settings, script_file) -> None:
    target = DeployTarget(account_id="A", name="S", workers_dev=True, script_path=script_file)
    fake_session.on("PUT", UPLOAD, status=400, text="bad script")

    with pytest.raises(RemoteError) as excinfo:
        orchestrator.publish(fake_session, settings, target)

    assert excinfo.value.status == 400
    assert "bad script" in str(excinfo.value)
    assert fake_session.calls_to("GET", SUBDOMAIN) == []
    assert fake_session.calls_to("POST", ENABLE) == []


def test_validation_failure_makes_no_requests(fake_session, settings, script_file) -> None:
    target = DeployTarget(account_id="A", name="S", workers_dev=False, script_path=script_file, site=Site("./x"))

    with pytest.raises(MissingFieldsError) as excinfo:
        orchestrator.publish(fake_session, settings, target)

    assert excinfo.value.fields == ["zone_id", "route"]
    assert fake_session.calls == []


def test_publish_site_binds_syncs_and_uploads_metadata(fake_session, settings, script_file, tmp_path) -> None:
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>hi</h1>")

    target = DeployTarget(
        account_id="A",
        name="S",
        workers_dev=True,
        script_path=script_file,
        site=Site(bucket=str(public)),
    )
    fake_session.on("GET", NAMESPACES, result=[], result_info={"total_pages": 1})
    fake_session.on("POST", NAMESPACES, result={"id": "site-ns", "title": "__S-workers_sites_assets"})
    fake_session.on("GET", NAMESPACES + "/site-ns/keys", result=[], result_info={})
    fake_session.on("PUT", NAMESPACES + "/site-ns/bulk", result=None)
    fake_session.on("PUT", UPLOAD, result={"id": "S"})
    fake_session.on("GET", SUBDOMAIN, result={"subdomain": "foo"})
    fake_session.on("POST", ENABLE, result=None)

    result = orchestrator.publish(fake_session, settings, target)

    assert result.bindings == ["__STATIC_CONTENT"]
    assert result.synced[0][1].uploaded == 1

    (upload,) = fake_session.calls_to("PUT", UPLOAD)
    metadata = upload["files"]["metadata"][1]
    assert '"namespace_id": "site-ns"' in metadata

    # 버킷 동기화는 스크립트 업로드보다 먼저 수행된다
    methods = [(m, url.rsplit("/", 1)[-1]) for m, url, _ in fake_session.calls]
    assert methods.index(("PUT", "bulk")) < methods.index(("PUT", "S"))


def test_bucket_error_aborts_before_upload(fake_session, settings, script_file, tmp_path) -> None:
    target = DeployTarget(
        account_id="A",
        name="S",
        workers_dev=True,
        script_path=script_file,
        kv_namespaces=[KvNamespace("ASSETS", "ns1", bucket=str(tmp_path / "missing"))],
    )

    with pytest.raises(FilesystemError):
        orchestrator.publish(fake_session, settings, target)

    assert fake_session.calls_to("PUT", UPLOAD) == []


def test_exposure_failure_leaves_script_uploaded(fake_session, settings, script_file) -> None:
    target = DeployTarget(account_id="A", name="S", workers_dev=True, script_path=script_file)
    fake_session.on("PUT", UPLOAD, result={"id": "S"})
    fake_session.on("GET", SUBDOMAIN, result={"subdomain": "foo"})
    fake_session.on("POST", ENABLE, status=500, text="nope")

    with pytest.raises(RemoteError):
        orchestrator.publish(fake_session, settings, target)

    # 되돌리는 호출(DELETE)은 없다
    assert len(fake_session.calls_to("PUT", UPLOAD)) == 1
    assert not [c for c in fake_session.calls if c[0] == "DELETE"]


def test_plan_publish_lists_stages() -> None:
    target = DeployTarget(account_id="A", name="S", workers_dev=True, site=Site("./public"))

    plan = orchestrator.plan_publish(target)

    assert "- site: ENABLED" in plan
    assert "- buckets: ENABLED" in plan
    assert "https://S.<subdomain>.workers.dev" in plan


def test_plan_publish_skips_site_stages_without_site() -> None:
    target = DeployTarget(account_id="A", name="S", zone_id="Z", route="example.com/*")

    plan = orchestrator.plan_publish(target)

    assert "- site: SKIPPED" in plan
    assert "- buckets: SKIPPED" in plan
    assert "a route (example.com/*)" in plan


def test_check_publish_reports_issues(tmp_path) -> None:
    target = DeployTarget(
        account_id="",
        name="S",
        workers_dev=True,
        script_path=str(tmp_path / "missing.js"),
        site=Site(str(tmp_path / "nope")),
    )

    summary, has_issues = orchestrator.check_publish(target)

    assert has_issues
    assert "account_id" in summary
    assert "스크립트 파일 없음" in summary
    assert "__STATIC_CONTENT" in summary


def test_check_publish_clean(script_file, tmp_path) -> None:
    public = tmp_path / "public"
    public.mkdir()
    target = DeployTarget(account_id="A", name="s", workers_dev=True, script_path=script_file, site=Site(str(public)))

    summary, has_issues = orchestrator.check_publish(target)

    assert not has_issues
    assert "주요 이슈 없음" in summary
