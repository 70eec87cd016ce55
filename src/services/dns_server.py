"""UDP DNS server that answers queries from DecisionEngine verdicts."""

import logging
import socket
import socketserver

import dns.exception
import dns.flags
import dns.message
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import dns.rrset

from src.models.classification import Classification, Verdict
from src.services.engine import DecisionEngine


logger = logging.getLogger(__name__)

VERDICT_RCODES = {
    Verdict.ALLOWED: dns.rcode.NOERROR,
    Verdict.BLOCKED: dns.rcode.NXDOMAIN,
    Verdict.RESOLUTION_FAILED: dns.rcode.SERVFAIL,
}


def build_response(
    query: dns.message.Message,
    classification: Classification,
    ttl: int = 300,
) -> dns.message.Message:
    """Synthesize the wire response for a classified query.

    Blocked queries get NXDOMAIN with the sinkhole records in the answer
    section. Only records matching the question type are included (both
    kinds for ANY).

    Args:
        query: Parsed incoming query.
        classification: Engine result for the query name.
        ttl: TTL of the synthesized address records.

    Returns:
        dns.message.Message: Authoritative response.
    """
    response = dns.message.make_response(query)
    response.flags |= dns.flags.AA
    response.set_rcode(VERDICT_RCODES[classification.verdict])

    if classification.is_failure() or not query.question:
        return response

    question = query.question[0]
    qtype = question.rdtype
    addresses = classification.addresses

    if qtype in (dns.rdatatype.A, dns.rdatatype.ANY) and addresses.a:
        response.answer.append(
            dns.rrset.from_text_list(
                question.name, ttl, dns.rdataclass.IN, dns.rdatatype.A, addresses.a
            )
        )
    if qtype in (dns.rdatatype.AAAA, dns.rdatatype.ANY) and addresses.aaaa:
        response.answer.append(
            dns.rrset.from_text_list(
                question.name,
                ttl,
                dns.rdataclass.IN,
                dns.rdatatype.AAAA,
                addresses.aaaa,
            )
        )

    return response


def answer_query(
    engine: DecisionEngine, query: dns.message.Message, ttl: int = 300
) -> dns.message.Message:
    """Classify the query's name and build the response.

    The name is passed to the engine in escaped presentation form, so labels
    holding dots, spaces or non-printable bytes keep distinct keys.

    Args:
        engine: Decision engine.
        query: Parsed incoming query.
        ttl: TTL of synthesized records.

    Returns:
        dns.message.Message: FORMERR for queries without a question, SERVFAIL
        if classification raised unexpectedly, otherwise the verdict response.
    """
    if not query.question:
        response = dns.message.make_response(query)
        response.set_rcode(dns.rcode.FORMERR)
        return response

    # Escaped text round-trips through dns.name.from_text to the same labels.
    qname = query.question[0].name.to_text()
    try:
        classification = engine.classify(qname)
    except Exception as e:
        logger.error(f"Unexpected error classifying {qname}: {e}", exc_info=True)
        response = dns.message.make_response(query)
        response.set_rcode(dns.rcode.SERVFAIL)
        return response

    return build_response(query, classification, ttl)


class DNSRequestHandler(socketserver.BaseRequestHandler):
    """Handles one UDP datagram; runs in its own thread."""

    server: "ClassifierServer"

    def handle(self) -> None:
        data, sock = self.request
        try:
            query = dns.message.from_wire(data)
        except dns.exception.DNSException as e:
            logger.warning(f"Dropping malformed query from {self.client_address[0]}: {e}")
            return

        response = answer_query(self.server.engine, query, self.server.ttl)
        sock.sendto(response.to_wire(), self.client_address)


class ClassifierServer(socketserver.ThreadingUDPServer):
    """Threaded UDP server, one thread per inbound query."""

    daemon_threads = True
    allow_reuse_address = True

    def __init__(
        self,
        server_address: tuple[str, int],
        engine: DecisionEngine,
        ttl: int = 300,
    ):
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        self.engine = engine
        self.ttl = ttl
        super().__init__(server_address, DNSRequestHandler)


def create_server(
    engine: DecisionEngine, host: str = "0.0.0.0", port: int = 53, ttl: int = 300
) -> ClassifierServer:
    """Bind a ClassifierServer; call serve_forever() to start answering."""
    server = ClassifierServer((host, port), engine, ttl)
    logger.info(f"Listening for DNS queries on {host}:{port}/udp")
    return server
