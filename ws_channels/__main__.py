from ws_channels.cli import app

app()
