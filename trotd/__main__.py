from trotd.cli import run

run()
