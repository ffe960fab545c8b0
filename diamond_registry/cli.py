"""Command-line interface for the Diamond registry.

Registers facet selectors with the Diamond deployed on chain, moves a
redeployed facet's selectors to its new address, and inspects routes.

Examples
--------
$ diamond-registry register-facets --network ganache
$ diamond-registry upgrade-facet PointOfSalesCoreFacet 0xAbC...
$ diamond-registry resolve 0xa9059cbb
$ diamond-registry selectors AccessControlFacet
"""

from pathlib import Path
from typing import Optional

import click

from diamond_registry.api.dto.registry_dto import FacetStatus
from diamond_registry.api.services.registration_service import FacetRegistrationService
from diamond_registry.core.config import settings
from diamond_registry.core.exceptions import RegistryException
from diamond_registry.core.logging import setup_logging
from diamond_registry.infrastructure.blockchain.abi_loader import load_abi, merge_abis, save_abi
from diamond_registry.infrastructure.blockchain.contract_client import DiamondContractClient
from diamond_registry.infrastructure.blockchain.selectors import selectors_from_abi
from diamond_registry.infrastructure.deployment import DeploymentFile

COMBINED_ABI_NAME = "DiamondCombined"

_STATUS_MARKS = {
    FacetStatus.REGISTERED: "registered",
    FacetStatus.UPGRADED: "upgraded",
    FacetStatus.SKIPPED: "already registered",
    FacetStatus.NO_SELECTORS: "no selectors",
    FacetStatus.MISSING_ABI: "ABI not found",
    FacetStatus.MISSING_ADDRESS: "address not found",
    FacetStatus.FAILED: "failed",
}


def _client(deployment: DeploymentFile) -> DiamondContractClient:
    diamond = settings.DIAMOND_ADDRESS or deployment.diamond_address
    if not diamond:
        raise click.ClickException("Diamond address not configured (DIAMOND_ADDRESS or MAIN_DIAMOND)")
    return DiamondContractClient(diamond)


@click.group()
@click.option("--network", default=None, help="Deployment network name (defaults to DEPLOYMENT_NETWORK).")
@click.option("--abi-dir", default=None, type=click.Path(file_okay=False), help="Directory holding facet ABIs.")
@click.pass_context
def cli(ctx: click.Context, network: Optional[str], abi_dir: Optional[str]) -> None:
    """Diamond selector registry tooling."""
    setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["network"] = network or settings.DEPLOYMENT_NETWORK
    ctx.obj["abi_dir"] = Path(abi_dir or settings.ABI_DIR)


@cli.command("register-facets")
@click.pass_context
def register_facets(ctx: click.Context) -> None:
    """Register every facet of the deployment with the Diamond."""
    deployment = DeploymentFile.for_network(ctx.obj["network"])
    client = _client(deployment)
    service = FacetRegistrationService(client)

    summary = service.register_deployment(deployment, ctx.obj["abi_dir"], caller=None)
    for result in summary.results:
        line = f"{result.facet_name}: {_STATUS_MARKS[result.status]} ({len(result.selectors)} selectors)"
        if result.error:
            line += f" - {result.error.splitlines()[0]}"
        click.echo(line)

    click.echo(f"Facets registered: {summary.succeeded}/{len(summary.results)}")
    click.echo(f"Total selectors: {summary.total_selectors}")


@cli.command("upgrade-facet")
@click.argument("facet_name")
@click.argument("facet_address")
@click.pass_context
def upgrade_facet(ctx: click.Context, facet_name: str, facet_address: str) -> None:
    """Point FACET_NAME's selectors at a redeployed FACET_ADDRESS."""
    deployment = DeploymentFile.for_network(ctx.obj["network"])
    abi_dir: Path = ctx.obj["abi_dir"]
    abi = load_abi(facet_name, abi_dir)

    service = FacetRegistrationService(_client(deployment))
    try:
        result = service.upgrade_facet(facet_name, facet_address, abi, caller=None)
    except RegistryException as e:
        raise click.ClickException(e.message)

    deployment.set_facet_address(facet_name, result.facet_address)
    deployment.save()

    combined_path = abi_dir / f"{COMBINED_ABI_NAME}.json"
    combined = load_abi(COMBINED_ABI_NAME, abi_dir) if combined_path.exists() else []
    save_abi(merge_abis(combined, abi), combined_path)

    click.echo(f"{facet_name}: {result.facet_address} ({len(result.changed)} selectors moved or added)")


@cli.command("resolve")
@click.argument("selector")
@click.pass_context
def resolve(ctx: click.Context, selector: str) -> None:
    """Show the facet serving SELECTOR on chain."""
    deployment = DeploymentFile.for_network(ctx.obj["network"])
    try:
        facet = _client(deployment).resolve(selector)
    except RegistryException as e:
        raise click.ClickException(e.message)
    click.echo(facet or "not registered")


@cli.command("selectors")
@click.argument("facet_name")
@click.pass_context
def selectors(ctx: click.Context, facet_name: str) -> None:
    """Print the selectors derived from FACET_NAME's ABI."""
    abi = load_abi(facet_name, ctx.obj["abi_dir"])
    for signature, selector in selectors_from_abi(abi):
        click.echo(f"{selector}  {signature}")


if __name__ == "__main__":
    cli()
