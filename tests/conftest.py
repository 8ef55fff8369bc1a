import pytest

from hkvisor.utils.config import (
    AppConfig,
    CameraConfig,
    Config,
    DeliveryConfig,
    ReceiversConfig,
    SmtpReceiverConfig,
    StreamConfig,
)

ALERT_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<EventNotificationAlert version="2.0" xmlns="http://www.hikvision.com/ver20/XMLSchema">
<ipAddress>192.168.1.64</ipAddress>
<portNo>80</portNo>
<protocol>HTTP</protocol>
<macAddress>44:19:b6:00:00:01</macAddress>
<channelID>1</channelID>
<dateTime>{date_time}</dateTime>
<activePostCount>{post_count}</activePostCount>
<eventType>{event_type}</eventType>
<eventState>{event_state}</eventState>
<eventDescription>{description}</eventDescription>
</EventNotificationAlert>"""


def make_alert_xml(
    event_state="active",
    event_type="VMD",
    date_time="2023-05-01T12:00:00-04:00",
    post_count=1,
    description="Motion alarm",
) -> bytes:
    """Build an EventNotificationAlert document like the ones cameras push."""
    return ALERT_TEMPLATE.format(
        event_state=event_state,
        event_type=event_type,
        date_time=date_time,
        post_count=post_count,
        description=description,
    ).encode("utf-8")


def make_multipart(bodies, boundary="boundary", closing=True) -> bytes:
    """Frame bodies the way a camera alert stream does."""
    stream = b""
    for body in bodies:
        stream += (
            f"--{boundary}\r\n"
            f"Content-Type: application/xml; charset=\"UTF-8\"\r\n"
            f"Content-Length: {len(body)}\r\n\r\n"
        ).encode("latin-1")
        stream += body + b"\r\n"
    if closing:
        stream += f"--{boundary}--\r\n".encode("latin-1")
    return stream


@pytest.fixture
def front_door():
    return CameraConfig(name="Front Door", ip_address="192.168.1.64", username="admin", password="secret")


@pytest.fixture
def back_yard():
    return CameraConfig(name="Back Yard", ip_address="192.168.1.65", username="admin", password="secret")


@pytest.fixture
def mock_config(tmp_path, front_door, back_yard):
    """Create a configuration with two cameras and no real endpoints."""
    return Config(
        cameras=[front_door, back_yard],
        receivers=ReceiversConfig(
            smtp=SmtpReceiverConfig(
                from_address="cams@example.com",
                to="me@example.com",
                server="smtp.example.com",
                port=587,
                username="cams@example.com",
                password="secret",
            )
        ),
        app=AppConfig(snapshot_dir=str(tmp_path), event_queue_size=0),
        delivery=DeliveryConfig(),
        stream=StreamConfig(reconnect_delay=0.01, max_reconnect_delay=0.05),
    )


@pytest.fixture
def alert_xml():
    return make_alert_xml


@pytest.fixture
def multipart_stream():
    return make_multipart
