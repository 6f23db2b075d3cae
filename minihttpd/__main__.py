from minihttpd.main import run

run()
