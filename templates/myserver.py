import argparse
from minirelay.server import RelayServer

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run RelayServer with a specified config.")
    parser.add_argument('--config', dest='config_path', required=True, help='The relative path to the config file (JSON) for the server (e.g., --config templates/server_config.json)')
    args = parser.parse_args()

    myserver = RelayServer(name="MyRelay")
    myserver.run(config_path=args.config_path)
