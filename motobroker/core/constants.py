
# Inbound topics
SIM_PREFIX = "sim/"
SIM_CAN_TOPIC = "sim/canmessages"
REAL_CAN_TOPIC = "can/messages"
DEFAULT_SUBSCRIPTIONS = ["sim/#", REAL_CAN_TOPIC]

# Outbound topics
RELAY_PREFIX = "moto/"
SENSOR_DETECTOR_TOPIC = "sensor/sensordetector"

# Arbitration id -> destination topic for sim/canmessages
DEFAULT_SIM_ROUTES = {
    0x100: "simsensor/blindspot",
    0x101: "simsensor/pedestrian",
    0x102: "simsensor/frontalcollision",
    0x103: "simsensor/rearcollision",
}

BLIND_SPOT_DETECTION = "BlindSpotDetection"
UNKNOWN_ALGORITHM = "Unknown"

PUBLISH_QOS = 1
PUBLISH_RETAIN = True
