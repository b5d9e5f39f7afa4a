"""CLI entrypoint: Typer app definition and command registration"""

import typer

from ejpub.cli.commands import (
    export_cmd, generate_cmd, init_cmd, main_callback, render_cmd, revert_cmd,
    save_cmd, show_cmd, upload_cmd, upload_url_cmd, versions_cmd,
)


app = typer.Typer(name="ejpub", no_args_is_help=True, help="Editor.js document rendering and field storage")

app.callback()(main_callback)
app.command(name="init")(init_cmd)
app.command(name="save")(save_cmd)
app.command(name="render")(render_cmd)
app.command(name="show")(show_cmd)
app.command(name="export")(export_cmd)
app.command(name="generate")(generate_cmd)
app.command(name="versions")(versions_cmd)
app.command(name="revert")(revert_cmd)
app.command(name="upload")(upload_cmd)
app.command(name="upload-url")(upload_url_cmd)
