import sys
import click

from cabinet.cabinet import Cabinet
from cabinet.errors import CabinetError
from cabinet.settings import load_settings


@click.command()
@click.argument("partial")
@click.option("--filename",
              type=click.Path(dir_okay=False, path_type=str),
              required=True,
              help="File the specifier was found in (required).")
@click.option("--directory",
              type=click.Path(file_okay=False, path_type=str),
              default="",
              help="Project root used for non-relative lookups.")
@click.option("--ts-config",
              type=click.Path(exists=True, dir_okay=False, path_type=str),
              default=None,
              help="Path to a tsconfig.json.")
@click.option("--webpack-config",
              type=click.Path(exists=True, dir_okay=False, path_type=str),
              default=None,
              help="Path to a webpack config (JS or JSON).")
@click.option("--amd-config",
              type=click.Path(exists=True, dir_okay=False, path_type=str),
              default=None,
              help="Path to a RequireJS config.")
@click.option("--entry",
              type=str,
              default=None,
              help="package.json field to use instead of \"main\" (e.g. module).")
@click.option("--no-type-definitions",
              is_flag=True,
              default=False,
              help="Prefer the JavaScript file over a resolved .d.ts.")
@click.option("--extension", "extensions",
              multiple=True,
              help="Extra extension the file should be treated as (repeatable).")
@click.option("--log-level", default=None,
              help="Override CABINET_LOG_LEVEL for this run.")
def cli(partial,
        filename,
        directory,
        ts_config,
        webpack_config,
        amd_config,
        entry,
        no_type_definitions,
        extensions,
        log_level):
    """
    Print the file PARTIAL refers to when imported from --filename.
    """
    overrides = {"log_level": log_level} if log_level else {}
    settings = load_settings(**overrides)

    cabinet = Cabinet(settings)
    try:
        result = cabinet(
            partial             = partial,
            filename            = filename,
            directory           = directory,
            extensions          = extensions,
            config              = amd_config,
            ts_config           = ts_config,
            webpack_config      = webpack_config,
            node_modules_config = {"entry": entry} if entry else None,
            no_type_definitions = no_type_definitions,
        )
    except CabinetError as exc:
        click.echo(f"Resolution failed: {exc}", err=True)
        sys.exit(2)

    if not result:
        click.echo(f"Cannot resolve '{partial}' from {filename}", err=True)
        sys.exit(1)
    click.echo(result)


def main():
    cli()


if __name__ == "__main__":
    main()   # noqa: E305
