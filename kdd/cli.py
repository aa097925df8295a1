import asyncio
import dataclasses
import enum
import functools
import inspect
import ipaddress
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, TypeVar

import click
import yaml

from kdd._cogs.structs import credentials, keys
from kdd._core import errors
from kdd._core.converters import names, nodes
from kdd._core.datastore import client as client_
from kdd._core.engines import loggers

_T = TypeVar('_T')

# The kinds as typed in CLI, with the key & list-options builders from the positional arguments.
KINDS: Mapping[str, Tuple[Callable[..., keys.Key], Callable[..., keys.ListOptions]]] = {
    'globalconfig': (
        lambda name: keys.GlobalConfigKey(name=name),
        lambda name='': keys.GlobalConfigListOptions(name=name),
    ),
    'ippool': (
        lambda cidr: keys.IPPoolKey(cidr=ipaddress.ip_network(cidr)),
        lambda cidr=None: keys.IPPoolListOptions(cidr=ipaddress.ip_network(cidr) if cidr else None),
    ),
    'node': (
        lambda hostname: keys.NodeKey(hostname=hostname),
        lambda hostname='': keys.NodeListOptions(hostname=hostname),
    ),
    'globalbgppeer': (
        lambda ip: keys.GlobalBGPPeerKey(peer_ip=ipaddress.ip_address(ip)),
        lambda ip=None: keys.GlobalBGPPeerListOptions(peer_ip=ipaddress.ip_address(ip) if ip else None),
    ),
    'nodebgppeer': (
        lambda nodename, ip: keys.NodeBGPPeerKey(nodename=nodename, peer_ip=ipaddress.ip_address(ip)),
        lambda nodename='', ip=None: keys.NodeBGPPeerListOptions(
            nodename=nodename, peer_ip=ipaddress.ip_address(ip) if ip else None),
    ),
    'profile': (
        lambda name: keys.ProfileKey(name=name),
        lambda name='': keys.ProfileListOptions(name=name),
    ),
    'workloadendpoint': (
        lambda workload_id: keys.WorkloadEndpointKey(
            orchestrator_id=names.ORCHESTRATOR_ID, workload_id=workload_id, endpoint_id=names.ENDPOINT_ID),
        lambda hostname='': keys.WorkloadEndpointListOptions(hostname=hostname),
    ),
    'policy': (
        lambda name: keys.PolicyKey(name=name),
        lambda name='': keys.PolicyListOptions(name=name),
    ),
    'hostconfig': (
        lambda hostname, name=nodes.TUNNEL_ADDRESS_CONFIG: keys.HostConfigKey(hostname=hostname, name=name),
        lambda hostname='', name='': keys.HostConfigListOptions(hostname=hostname, name=name),
    ),
    'readyflag': (
        lambda: keys.ReadyFlagKey(),
        lambda: keys.ReadyFlagListOptions(),
    ),
}


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = False,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def connection_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to build the connection config in all commands the same way."""
    @click.option('--kubeconfig', type=click.Path(dir_okay=False), envvar='KUBECONFIG')
    @click.option('--server', 'api_endpoint', type=str)
    @click.option('--token', 'api_token', type=str)
    @click.option('--ca-file', type=click.Path(exists=True, dir_okay=False))
    @click.option('--cert-file', type=click.Path(exists=True, dir_okay=False))
    @click.option('--key-file', type=click.Path(exists=True, dir_okay=False))
    @click.option('--insecure-skip-tls-verify', is_flag=True)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(kubeconfig: Optional[str],
                api_endpoint: Optional[str],
                api_token: Optional[str],
                ca_file: Optional[str],
                cert_file: Optional[str],
                key_file: Optional[str],
                insecure_skip_tls_verify: bool,
                *args: Any, **kwargs: Any) -> Any:
        config = credentials.KubeConfig(
            kubeconfig=kubeconfig,
            api_endpoint=api_endpoint,
            api_token=api_token,
            ca_file=ca_file,
            cert_file=cert_file,
            key_file=key_file,
            insecure_skip_tls_verify=insecure_skip_tls_verify,
        )
        return fn(*args, config=config, **kwargs)

    return wrapper


def build_identifier(kind: str, args: Tuple[str, ...], *, listing: bool) -> Any:
    if kind not in KINDS:
        raise click.BadParameter(f"Unknown kind {kind!r}; use one of: {', '.join(KINDS)}.",
                                 param_hint='KIND')
    key_builder, options_builder = KINDS[kind]
    builder = options_builder if listing else key_builder
    try:
        inspect.signature(builder).bind(*args)
    except TypeError:
        raise click.UsageError(f"Wrong number of arguments for {kind!r}: {' '.join(args)!r}")
    try:
        return builder(*args)
    except ValueError as e:
        raise click.UsageError(f"Malformed arguments for {kind!r}: {e}")


def render(obj: Any) -> Any:
    """ Convert the keys & values to plain YAML-serializable structures. """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {field.name: render(getattr(obj, field.name)) for field in dataclasses.fields(obj)}
    elif isinstance(obj, enum.Enum):
        return obj.value
    elif isinstance(obj, (ipaddress.IPv4Address, ipaddress.IPv6Address,
                          ipaddress.IPv4Network, ipaddress.IPv6Network)):
        return str(obj)
    elif isinstance(obj, Mapping):
        return {str(key): render(val) for key, val in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [render(item) for item in obj]
    else:
        return obj


def run_with_client(fn: Callable[[client_.KubeClient], Awaitable[_T]],
                    config: credentials.KubeConfig) -> _T:

    async def _run() -> _T:
        try:
            client = client_.KubeClient.from_config(config)
        except credentials.LoginError as e:
            raise click.ClickException(str(e))
        try:
            return await fn(client)
        except errors.DatastoreError as e:
            raise click.ClickException(str(e))
        finally:
            await client.close()

    return asyncio.run(_run())


@click.version_option(prog_name='kdd')
@click.group(name='kdd', context_settings=dict(
    auto_envvar_prefix='KDD',
))
def main() -> None:
    pass


@main.command()
@logging_options
@connection_options
def init(config: credentials.KubeConfig) -> None:
    """ Register the custom resources and mark the cluster as ours. """
    run_with_client(lambda client: client.ensure_initialized(), config)
    click.echo("The datastore is initialized.")


@main.command()
@logging_options
@connection_options
@click.argument('kind', type=str)
@click.argument('args', nargs=-1)
def get(config: credentials.KubeConfig, kind: str, args: Tuple[str, ...]) -> None:
    """ Get one entity of a kind by its key fields. """
    key = build_identifier(kind, args, listing=False)
    kvp = run_with_client(lambda client: client.get(key), config)
    click.echo(yaml.safe_dump(render(kvp), sort_keys=False), nl=False)


@main.command(name='list')
@logging_options
@connection_options
@click.argument('kind', type=str)
@click.argument('args', nargs=-1)
def list_(config: credentials.KubeConfig, kind: str, args: Tuple[str, ...]) -> None:
    """ List the entities of a kind, optionally filtered by the key fields. """
    options = build_identifier(kind, args, listing=True)
    kvps = run_with_client(lambda client: client.list(options), config)
    items: Dict[str, Any] = {'items': render(kvps)}
    click.echo(yaml.safe_dump(items, sort_keys=False), nl=False)
