from envelop import Environment


env = Environment()

PHANTOMJS_PATH = env.get('PHANTOMJS_PATH', 'phantomjs')

# Script run by phantom that serves the websocket bridge on the port given as its last argument
BRIDGE_SCRIPT_PATH = env.get('PHANTOM_BRIDGE_SCRIPT', None)

# Seconds
MESSAGE_TIMEOUT = float(env.get('PHANTOM_MESSAGE_TIMEOUT', 30))
ASYNC_MESSAGE_TIMEOUT = float(env.get('PHANTOM_ASYNC_MESSAGE_TIMEOUT', 120))
LAUNCH_TIMEOUT = float(env.get('PHANTOM_LAUNCH_TIMEOUT', 5))
