from .server.app import run

run()
