import os
import sys

import click
import requests
from dotenv import dotenv_values

from .config import load_env_files, ApiSettings, DeployTarget, GlobalUser, Site
from .cf_api import auth_session
from .errors import PublishError
from .logging_utils import setup_logging, get_logger
from .orchestrator import check_publish, plan_publish, publish as publish_target


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리)",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (-vv 이면 HTTP 커넥션 로그까지 출력)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """Cloudflare Workers 스크립트 배포용 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _load_target_from_ctx(ctx: click.Context) -> DeployTarget:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    target = DeployTarget.from_env()
    # 상대 경로는 작업 디렉토리 기준으로 해석한다
    target.script_path = _resolve(base_dir, target.script_path)
    if target.site is not None and target.site.bucket:
        target.site = Site(bucket=_resolve(base_dir, target.site.bucket))
    for ns in target.kv_namespaces:
        if ns.bucket:
            ns.bucket = _resolve(base_dir, ns.bucket)
    logger.debug("Target loaded: %s", target)
    return target


def _resolve(base_dir: str, path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(base_dir, path))


def _build_env_dump(base_dir: str) -> str:
    """
    .env / .env.worker 의 내용을 그대로 덤프한다.
    (.env.secrets 는 인증 정보가 있으므로 제외)
    """
    lines: list[str] = []
    for filename in (".env", ".env.worker"):
        lines.append(f"## {filename}")
        path_values = dotenv_values(dotenv_path=f"{base_dir}/{filename}")
        if not path_values:
            lines.append("- (파일이 없거나 비어 있습니다)")
        else:
            for k, v in sorted(path_values.items()):
                if v is None:
                    continue
                lines.append(f"- {k}={v}")
        lines.append("")
    return "\n".join(lines).rstrip()


@main.command()
@click.option(
    "-a",
    "--all",
    "show_all",
    is_flag=True,
    help=".env/.env.worker 에서 읽은 원본 값을 함께 출력합니다.",
)
@click.pass_context
def plan(ctx: click.Context, show_all: bool) -> None:
    """현재 설정을 요약하고 publish 단계별 ENABLED/SKIPPED 상태를 출력"""
    target = _load_target_from_ctx(ctx)
    report = plan_publish(target)

    if show_all:
        base_dir: str = ctx.obj["chdir"]
        report = report + "\n\n" + "## Raw env from files\n" + _build_env_dump(base_dir)

    click.echo(report)


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """
    publish 전에 설정값, 스크립트 파일, 버킷 디렉토리를 점검한다.
    (네트워크 호출 없음)
    """
    target = _load_target_from_ctx(ctx)
    report, has_issues = check_publish(target)
    click.echo(report)

    if has_issues:
        sys.exit(1)


@main.command()
@click.pass_context
def publish(ctx: click.Context) -> None:
    """스크립트를 업로드하고 route 또는 workers.dev 서브도메인으로 노출"""
    target = _load_target_from_ctx(ctx)

    try:
        user = GlobalUser.from_env()
        settings = ApiSettings.from_env()
    except ValueError as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    session = auth_session(user)
    try:
        result = publish_target(session, settings, target)
    except PublishError as e:
        logger.debug("publish 실패", exc_info=True)
        click.echo(f"[ERROR] publish 실패: {e}", err=True)
        sys.exit(1)
    except requests.RequestException as e:
        logger.exception("API 요청 중 오류 발생")
        click.echo(f"[ERROR] API 요청 실패: {e}", err=True)
        sys.exit(1)
    finally:
        session.close()

    click.echo(result.summary())


@main.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """
    현재 디렉토리에 env 템플릿(env.worker.example, env.secrets.example)을 복사하는 초기화.
    """
    from importlib import resources

    base_dir: str = ctx.obj["chdir"]

    for name in ("env.worker.example", "env.secrets.example"):
        target = os.path.join(base_dir, name)
        if os.path.exists(target):
            click.echo(f"{name} 이(가) 이미 존재하여 건너뜀")
            continue
        try:
            with resources.files("worker_kit.examples").joinpath(name).open("r", encoding="utf-8") as src, open(
                target, "w", encoding="utf-8"
            ) as dst:
                dst.write(src.read())
            click.echo(f"{name} 템플릿을 생성했습니다.")
        except FileNotFoundError:
            click.echo(f"템플릿 {name} 을(를) 패키지에서 찾을 수 없습니다.", err=True)
