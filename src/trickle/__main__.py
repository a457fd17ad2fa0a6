from trickle.main import entrypoint

entrypoint()
