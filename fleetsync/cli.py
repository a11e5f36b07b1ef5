"""
Command-line interface for fleet sync.
Provides commands for the planning use cases and vehicle inspection.
"""

import asyncio
import logging
from typing import List, Optional

import click

from .models import LatLng
from .service import FleetSyncService, UseCaseResult


logger = logging.getLogger(__name__)


def _parse_lat_lng(ctx, param, value: Optional[str]) -> Optional[LatLng]:
    """Click callback turning 'LAT,LNG' into a LatLng."""
    if value is None:
        return None
    try:
        lat, lng = (float(part) for part in value.split(','))
    except ValueError:
        raise click.BadParameter("expected LAT,LNG, e.g. 60.169455,24.940909")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise click.BadParameter("latitude or longitude out of range")
    return LatLng(latitude=lat, longitude=lng)


@click.group()
@click.option('--config', default='config/params.yaml', help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--provider-id', default=None, help='Override project.provider_id')
@click.pass_context
def main(ctx, config: str, verbose: bool, provider_id: Optional[str]):
    """Route Optimization to Fleet Engine CLI."""
    # Setup logging
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Store config path and overrides in context
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['overrides'] = {}
    if provider_id:
        ctx.obj['overrides']['project.provider_id'] = provider_id  # CLI > YAML


def _create_service(ctx) -> FleetSyncService:
    service = FleetSyncService(ctx.obj['config_path'])
    service.apply_overrides(ctx.obj.get('overrides', {}))
    return service


def _echo_result(result: UseCaseResult) -> None:
    status = "OK" if result.ok else "FAILED"
    click.echo(f"\n{result.name}: {status}")
    if result.error:
        click.echo(f"  Error: {result.error}")
    if result.ok:
        click.echo(f"  Used vehicles: {result.used_vehicle_count}")
        if result.skipped_shipment_count:
            click.echo(f"  Skipped shipments: {result.skipped_shipment_count}")

    for i, report in enumerate(result.reports, start=1):
        click.echo(f"  Pass {i}: {len(report.routes)} routes, {report.tasks_created} tasks")
        for route in report.routes:
            segments = "attached" if route.segments_attached else "NOT attached"
            click.echo(f"    {route.vehicle_name}: {len(route.task_names)} tasks, segments {segments}")
        for vehicle_id in report.vehicles_without_visits:
            click.echo(f"    {vehicle_id}: no visits")
        for vehicle_id in report.failed_vehicles:
            click.echo(f"    {vehicle_id}: failed")


def _run_use_case(ctx, runner) -> UseCaseResult:
    """Run one use case coroutine factory against a fresh service."""

    async def _run():
        service = _create_service(ctx)
        try:
            return await runner(service)
        finally:
            await service.close()

    result = asyncio.run(_run())
    _echo_result(result)
    if not result.ok:
        raise click.ClickException(f"{result.name} failed")
    return result


@main.command('initial-plan')
@click.argument('model_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def initial_plan(ctx, model_file: str):
    """Optimize MODEL_FILE and publish the routes to Fleet Engine."""
    click.echo(f"Planning {model_file}...")
    _run_use_case(ctx, lambda service: service.initial_planning(model_file))


@main.command()
@click.argument('model_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--relocate', callback=_parse_lat_lng, default=None,
              help='Move tracked vehicles to LAT,LNG before re-optimizing')
@click.pass_context
def reoptimize(ctx, model_file: str, relocate: Optional[LatLng]):
    """Plan MODEL_FILE, then re-optimize from the first solution."""
    click.echo(f"Re-optimizing {model_file}...")
    _run_use_case(ctx, lambda service: service.reoptimize(model_file, relocate_to=relocate))


@main.command('new-stop')
@click.argument('model_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--pickup', callback=_parse_lat_lng, default=None, help='Pickup point LAT,LNG')
@click.option('--delivery', callback=_parse_lat_lng, default=None, help='Delivery point LAT,LNG')
@click.pass_context
def new_stop(ctx, model_file: str, pickup: Optional[LatLng], delivery: Optional[LatLng]):
    """Plan MODEL_FILE, add a new shipment and plan again."""
    click.echo(f"Adding a stop to {model_file}...")
    _run_use_case(ctx, lambda service: service.new_stop(model_file, pickup=pickup, delivery=delivery))


@main.command()
@click.pass_context
def demo(ctx):
    """Run all three use cases with the configured model files."""

    async def _demo() -> List[UseCaseResult]:
        service = _create_service(ctx)
        try:
            return await service.run_demo()
        finally:
            await service.close()

    results = asyncio.run(_demo())
    for result in results:
        _echo_result(result)

    failed = [r.name for r in results if not r.ok]
    if failed:
        raise click.ClickException(f"Failed use cases: {', '.join(failed)}")


@main.command()
@click.argument('vehicle_id')
@click.pass_context
def vehicle(ctx, vehicle_id: str):
    """Show a tracked vehicle and the tasks on its remaining journey."""

    async def _inspect():
        service = _create_service(ctx)
        try:
            return await service.inspect_vehicle(vehicle_id)
        except Exception as e:
            logger.error(f"Vehicle lookup failed: {e}")
            raise click.ClickException(str(e))
        finally:
            await service.close()

    found = asyncio.run(_inspect())
    if found is None:
        raise click.ClickException(f"Vehicle does not exist: {vehicle_id}")

    delivery_vehicle, tasks = found
    click.echo(f"{delivery_vehicle.name}")
    if delivery_vehicle.last_location and delivery_vehicle.last_location.location:
        loc = delivery_vehicle.last_location.location
        click.echo(f"  Last location: {loc.latitude},{loc.longitude}")
    click.echo(f"  Remaining stops: {len(tasks)}")
    for i, task in enumerate(tasks, start=1):
        click.echo(f"    {i}. {task.name} [{task.type.value}, {task.state.value}] {task.task_duration}")


if __name__ == '__main__':
    main()
