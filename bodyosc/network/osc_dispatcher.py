"""
OSC dispatcher
==============

Serializes body/face payloads into OSC and sends them over UDP to every
configured destination.

Address layout (prefix configurable, default "/bodies"):
  /bodies/{id}/joints/{JointName}   x, y, z, trackingState
  /bodies/{id}/hands/{Left|Right}   handState, confidence
  /bodies/{id}/face/{Parameter}     value

With bundling enabled (default) each payload goes out as one OSC bundle per
destination; otherwise every message is sent as its own datagram.

Transmission is fire-and-forget: no acknowledgement, no retry. A failure on
one destination is logged and recorded in the status text; the other
destinations are still served.
"""
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from pythonosc.osc_bundle_builder import IMMEDIATELY, OscBundleBuilder
from pythonosc.osc_message import OscMessage
from pythonosc.osc_message_builder import OscMessageBuilder
from pythonosc.udp_client import SimpleUDPClient

from ..core.logger import logger
from ..encoding.pose_encoder import BodyPayload, FacePayload

# Consecutive failures between repeated warnings for one destination
FAILURE_LOG_INTERVAL = 30


@dataclass
class Destination:
    """One OSC endpoint and its send statistics"""
    host: str
    port: int
    client: Optional[Any] = None
    sent: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.host}:{self.port}"


def build_message(address: str, args: Sequence[Any]) -> OscMessage:
    builder = OscMessageBuilder(address=address)
    for arg in args:
        builder.add_arg(arg)
    return builder.build()


class OscDispatcher:
    """
    OSC sender for encoded payloads

    Usage:
        dispatcher = OscDispatcher(["127.0.0.1", "192.168.0.20"], port=12345)
        dispatcher.send_body(encoder.encode_body(body))
        print(dispatcher.status_text())
        dispatcher.close()
    """

    def __init__(
        self,
        ip_addresses: Sequence[str],
        port: int,
        address_prefix: str = "/bodies",
        bundle: bool = True,
        client_factory: Optional[Callable[[str, int], Any]] = None,
    ):
        """
        Args:
            ip_addresses: destination hosts (fixed for the session)
            port: destination UDP port
            address_prefix: OSC address prefix
            bundle: send one bundle per payload instead of loose messages
            client_factory: (host, port) -> client with send(content);
                            defaults to pythonosc SimpleUDPClient
        """
        self.port = int(port)
        self.address_prefix = "/" + address_prefix.strip("/") if address_prefix.strip("/") else ""
        self.bundle = bundle
        self._client_factory = client_factory or SimpleUDPClient

        self.destinations: List[Destination] = []
        for host in ip_addresses:
            destination = Destination(host=host, port=self.port)
            try:
                destination.client = self._client_factory(host, self.port)
            except Exception as e:
                # Unresolvable host: keep the entry so the status shows it
                destination.last_error = str(e)
                logger.warning(f"[OSC] Cannot create client for {destination.label}: {e}")
            self.destinations.append(destination)

        self._stats_lock = threading.Lock()
        self.payloads_sent = 0
        self.messages_built = 0

        targets = ", ".join(d.label for d in self.destinations) or "no destinations"
        self._status = f"OSC -> {targets} (idle)"
        logger.info(f"[OSC] Dispatcher ready: {targets}, bundle={self.bundle}")

    # ------------------------------------------------------------------
    #  Message building
    # ------------------------------------------------------------------

    def body_address(self, tracking_id: int, *parts: str) -> str:
        return "/".join([self.address_prefix, str(tracking_id), *parts])

    def build_body_messages(self, payload: BodyPayload) -> List[OscMessage]:
        messages = []
        for joint in payload.joints:
            messages.append(build_message(
                self.body_address(payload.tracking_id, "joints", joint.name),
                [joint.x, joint.y, joint.z, joint.tracking_state],
            ))
        for hand in payload.hands:
            messages.append(build_message(
                self.body_address(payload.tracking_id, "hands", hand.side),
                [hand.state, hand.confidence],
            ))
        return messages

    def build_face_messages(self, payload: FacePayload) -> List[OscMessage]:
        return [
            build_message(self.body_address(payload.tracking_id, "face", parameter.name), [parameter.value])
            for parameter in payload.parameters
        ]

    # ------------------------------------------------------------------
    #  Sending
    # ------------------------------------------------------------------

    def send_body(self, payload: BodyPayload) -> bool:
        """Send one body payload to every destination; True if all succeeded"""
        return self._dispatch(self.build_body_messages(payload), kind="body")

    def send_face(self, payload: FacePayload) -> bool:
        """Send one face payload to every destination; True if all succeeded"""
        return self._dispatch(self.build_face_messages(payload), kind="face")

    def _dispatch(self, messages: List[OscMessage], kind: str) -> bool:
        if not messages:
            return True

        if self.bundle:
            builder = OscBundleBuilder(IMMEDIATELY)
            for message in messages:
                builder.add_content(message)
            contents = [builder.build()]
        else:
            contents = messages

        results = [self._send_to(destination, contents, kind) for destination in self.destinations]

        with self._stats_lock:
            self.payloads_sent += 1
            self.messages_built += len(messages)
            self._status = self._format_status(kind)
        return all(results)

    def _send_to(self, destination: Destination, contents: List[Any], kind: str) -> bool:
        error: Optional[str] = "no client"
        if destination.client is not None:
            # Network I/O happens outside the stats lock
            try:
                for content in contents:
                    destination.client.send(content)
                error = None
            except Exception as e:
                error = str(e)

        with self._stats_lock:
            recovered_after = destination.consecutive_failures if error is None else 0
            if error is None:
                destination.sent += 1
                destination.consecutive_failures = 0
                destination.last_error = None
            else:
                destination.failures += 1
                destination.consecutive_failures += 1
                if destination.client is not None:
                    destination.last_error = error
            consecutive = destination.consecutive_failures

        if error is None:
            if recovered_after:
                logger.info(f"[OSC] {destination.label} recovered after {recovered_after} failures")
            return True

        if destination.client is not None and consecutive % FAILURE_LOG_INTERVAL == 1:
            logger.warning(
                f"[OSC] Send {kind} to {destination.label} failed "
                f"(consecutive {consecutive}): {error}"
            )
        return False

    # ------------------------------------------------------------------
    #  Status
    # ------------------------------------------------------------------

    def _format_status(self, kind: str) -> str:
        """Caller holds _stats_lock"""
        parts = []
        for destination in self.destinations:
            if destination.consecutive_failures:
                parts.append(f"{destination.label} FAILED ({destination.last_error or 'no client'})")
            else:
                parts.append(f"{destination.label} ok")
        return f"OSC {kind} -> " + " | ".join(parts) if parts else "OSC: no destinations"

    def status_text(self) -> str:
        """Short summary of the last transmission"""
        return self._status

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return {
                'payloads_sent': self.payloads_sent,
                'messages_built': self.messages_built,
                'destinations': {
                    d.label: {'sent': d.sent, 'failures': d.failures, 'last_error': d.last_error}
                    for d in self.destinations
                },
            }

    def close(self):
        """
        Close the destination clients

        A client with its own close() is closed
        directly. Where pythonosc's SimpleUDPClient lacks a public close, its socket
        is the library-internal `_sock` attribute, closed when present.
        """
        for destination in self.destinations:
            client = destination.client
            if client is None:
                continue
            closer = getattr(client, "close", None)
            if not callable(closer):
                sock = getattr(client, "_sock", None)
                closer = sock.close if sock is not None else None
            if closer is None:
                continue
            try:
                closer()
            except OSError as e:
                logger.debug(f"[OSC] Closing client for {destination.label} failed: {e}")
        logger.info("[OSC] Dispatcher closed")
