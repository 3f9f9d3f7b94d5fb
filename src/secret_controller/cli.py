"""Command line – ``secret-controller``.

Loads :class:`ControllerSettings` (environment, optional ``.env`` file,
then command-line options), connects to the cluster and the vault, and
runs the controller until SIGINT or SIGTERM.  A second signal exits at
once with status 1.
"""
from __future__ import annotations

import asyncio
import os
import signal
from pathlib import Path
from typing import Any, Optional

import typer
from kubernetes import client, config

from secret_controller.adapters.kubernetes import (
    KubernetesEventRecorder,
    KubernetesSecretWriter,
    SpecificationInformer,
)
from secret_controller.adapters.vault import HashiCorpVaultProvider, VaultAuthenticator
from secret_controller.application import Controller, RateLimitingQueue, Reconciler, SecretMaterializer
from secret_controller.config import ConfigError, ControllerSettings, DotenvSettingsLoader, EnvSettingsLoader, SettingsFactory
from secret_controller.kernel.errors import BaseError, TransportError, error_text
from secret_controller.observability.logging import JsonLoggerFactory, get_logger
from secret_controller.resilience.ratelimit import default_controller_rate_limiter
from secret_controller.vault import VaultProvider

logger = get_logger(__name__)

app = typer.Typer(add_completion=False, help="Materialize Kubernetes Secrets from VaultSecret resources.")


def build_api_client(settings: ControllerSettings) -> client.ApiClient:
    """Out-of-cluster config when a kubeconfig is given, in-cluster otherwise."""
    try:
        if settings.kubeconfig:
            config.load_kube_config(config_file=settings.kubeconfig)
        else:
            config.load_incluster_config()
        configuration = client.Configuration.get_default_copy()
    except config.ConfigException as exc:
        if not settings.master_url:
            raise TransportError(f"building kubernetes client config: {exc}", cause=exc) from exc
        configuration = client.Configuration()
    if settings.master_url:
        configuration.host = settings.master_url
    return client.ApiClient(configuration)


def build_controller(settings: ControllerSettings, api_client: Any, provider: VaultProvider) -> Controller:
    informer = SpecificationInformer(
        client.CustomObjectsApi(api_client),
        group=settings.resource_group,
        version=settings.resource_version,
        plural=settings.resource_plural,
        namespace=settings.namespace,
        timeout_seconds=settings.watch_timeout_seconds,
    )
    core_api = client.CoreV1Api(api_client)
    reconciler = Reconciler(
        informer,
        SecretMaterializer(provider),
        KubernetesSecretWriter(core_api),
        KubernetesEventRecorder(core_api),
    )
    queue = RateLimitingQueue(
        default_controller_rate_limiter(
            base_delay=settings.backoff_base_delay,
            max_delay=settings.backoff_max_delay,
            qps=settings.rate_limit_qps,
            burst=settings.rate_limit_burst,
        ),
        name=settings.resource_plural,
    )
    return Controller(informer, reconciler, queue)


def install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> None:
    def _on_signal(signum: int) -> None:
        name = signal.Signals(signum).name
        if stop.is_set():
            logger.error("controller.forced_exit", signal=name)
            os._exit(1)
        logger.info("controller.signal_received", signal=name)
        stop.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, _on_signal, signum)


async def serve(settings: ControllerSettings, stop: asyncio.Event | None = None) -> None:
    """Connect to the cluster and the vault, then run until *stop* is set."""
    if stop is None:
        stop = asyncio.Event()
        install_signal_handlers(asyncio.get_running_loop(), stop)

    api_client = build_api_client(settings)
    authenticator = VaultAuthenticator(
        settings.vault_addr,
        token=settings.vault_token,
        role_id=settings.vault_role_id,
        secret_id=settings.vault_secret_id,
        credentials_file=settings.vault_credentials_file,
    )
    await authenticator.authenticate()
    provider = HashiCorpVaultProvider(authenticator, mount_point=settings.vault_mount_point)

    controller = build_controller(settings, api_client, provider)
    logger.info(
        "controller.configured",
        resource=f"{settings.resource_plural}.{settings.api_version}",
        namespace=settings.namespace or "*",
        vault_addr=settings.vault_addr,
    )
    await controller.run(settings.workers, stop)


def load_settings(env_file: Path | None = None, **overrides: Any) -> ControllerSettings:
    loader = DotenvSettingsLoader(str(env_file)) if env_file else EnvSettingsLoader()
    return SettingsFactory.create(ControllerSettings, [loader], overrides=overrides)


@app.command()
def run(
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="Path to a kubeconfig. Only required if out-of-cluster."),
    master: Optional[str] = typer.Option(None, "--master", help="Address of the Kubernetes API server. Overrides the kubeconfig."),
    namespace: Optional[str] = typer.Option(None, "--namespace", help="Watch only this namespace (default: all)."),
    vault_addr: Optional[str] = typer.Option(None, "--vault-addr", help="Address of the Vault server."),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Number of concurrent reconcile workers."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL."),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Read SECRET_CONTROLLER_* settings from this file."),
) -> None:
    """Run the VaultSecret controller until interrupted."""
    try:
        settings = load_settings(
            env_file,
            kubeconfig=kubeconfig,
            master_url=master,
            namespace=namespace,
            vault_addr=vault_addr,
            workers=workers,
            log_level=log_level,
        )
    except ConfigError as exc:
        typer.echo(f"invalid configuration: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc

    JsonLoggerFactory.configure(settings.log_level)
    try:
        asyncio.run(serve(settings))
    except BaseError as exc:
        logger.error("controller.fatal", code=exc.code, error=error_text(exc))
        raise typer.Exit(code=1) from exc


def main() -> None:
    app()


__all__ = ["app", "build_api_client", "build_controller", "load_settings", "main", "serve"]
