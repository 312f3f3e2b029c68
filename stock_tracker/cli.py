import click
from flask.cli import AppGroup

from stock_tracker import services
from stock_tracker.rollover import perform_rollover

stock_cli = AppGroup("stock", help="Perintah pemeliharaan stok.")


@stock_cli.command("rollover")
@click.option("--archive-dir", default=None, help="Folder arsip CSV snapshot sebelum rollover.")
@click.option("--by", "executed_by", default="scheduler", show_default=True)
@click.option("--once-per-day/--always", default=True, show_default=True,
              help="Lewati jika rollover sudah dijalankan hari ini.")
def rollover_command(archive_dir, executed_by, once_per_day):
    """Jalankan rollover harian (dipanggil dari cron / scheduler eksternal)."""
    if once_per_day:
        status = services.rollover_status()
        if not status.ok:
            raise click.ClickException(status.error)
        if status.data["rolled_over_today"]:
            click.echo(f"Rollover untuk {status.data['today']} sudah dijalankan, dilewati.")
            return

    result = perform_rollover(executed_by=executed_by, archive_dir=archive_dir)
    if not result.ok:
        raise click.ClickException(result.error)
    click.echo(f"Rollover selesai: {len(result.data['updatedData'])} produk diperbarui.")


@stock_cli.command("status")
def status_command():
    """Tampilkan status rollover terakhir."""
    result = services.rollover_status()
    if not result.ok:
        raise click.ClickException(result.error)
    data = result.data
    last = data["last_rollover"]
    click.echo(f"Tanggal      : {data['today']}")
    click.echo(f"Jumlah produk: {data['product_count']}")
    if last:
        click.echo(f"Rollover terakhir: {last['executed_at']} oleh {last['executed_by']}")
    else:
        click.echo("Belum pernah rollover.")
    click.echo(f"Sudah rollover hari ini: {'ya' if data['rolled_over_today'] else 'belum'}")
