from .cli.main import start

start()
