#!/usr/bin/env python3
"""Demo: Ordering a Bare-Metal Server Against an In-Memory Backend.

Walks through the full server lifecycle without touching the real API:
an unavailable request with suggested alternatives, an SSH key upload,
a successful order that takes a few polls to provision, a rename, and
finally cancellation.

Run from the project root:
    python examples/demo_provision.py
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from ics_baremetal import ICSProvider, InMemoryICS, ResolutionError
from ics_baremetal.models import BareMetalServerSpec, SSHKeySpec

# ANSI colors
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"

INVENTORY = [
    {"sku_id": 1, "sku_product_name": "c1.small", "location_code": "NYC1",
     "auto_provision_quantity": 0, "cpu_cores": 6, "total_ram_gb": 32},
    {"sku_id": 2, "sku_product_name": "c1.small", "location_code": "ORD1",
     "auto_provision_quantity": 3, "cpu_cores": 6, "total_ram_gb": 32},
    {"sku_id": 3, "sku_product_name": "c2.medium", "location_code": "NYC1",
     "auto_provision_quantity": 5, "cpu_cores": 16, "total_ram_gb": 128},
]

ADDONS = {
    ("c1.small", "ORD1"): {"operating_systems": {"products": [
        {"name": "Ubuntu 24.04", "product_code": "UBUNTU_24_04"},
        {"name": "Debian 12", "product_code": "DEBIAN_12"},
    ]}},
    ("c2.medium", "NYC1"): {"operating_systems": {"products": [
        {"name": "Ubuntu 24.04", "product_code": "UBUNTU_24_04"},
    ]}},
}


def _step(title: str) -> None:
    print(f"\n{BOLD}{CYAN}== {title} =={RESET}")


def main() -> None:
    backend = InMemoryICS(inventory=INVENTORY, addons=ADDONS, provision_after=2)
    provider = ICSProvider(backend, poll_interval=0.5, provisioning_timeout=10)

    _step("1. Ask for a type that is sold out in NYC1")
    try:
        provider.servers.create(BareMetalServerSpec(
            instance_type="c1.small", location="NYC1", operating_system="Ubuntu 24.04",
        ))
    except ResolutionError as e:
        print(f"{RED}rejected before ordering:{RESET}")
        print(f"{DIM}{e}{RESET}")

    _step("2. Upload an SSH key")
    key = provider.ssh_keys.create(
        SSHKeySpec(label="demo-laptop", public_key="ssh-ed25519 AAAAC3Nza demo@laptop")
    ).state
    print(f"{GREEN}created{RESET} key id={key.id} label={key.label}")

    _step("3. Order c1.small in ORD1 and wait for provisioning")
    result = provider.servers.create(BareMetalServerSpec(
        instance_type="c1.small",
        location="ORD1",
        operating_system="Debian 12",
        hostname="demo-web-1",
        friendly_name="Demo Web",
        ssh_key_labels=["demo-laptop"],
    ))
    server = result.state
    polls = len(backend.calls_to("get_servers"))
    print(f"{GREEN}provisioned{RESET} {server.id} service_id={server.service_id} "
          f"ip={server.public_ip} after {polls} poll(s)")
    for warning in result.warnings:
        print(f"{YELLOW}warning:{RESET} {warning.summary}")

    _step("4. Change the OS in place (needs replacement)")
    plan = server.model_copy(update={"operating_system": "Ubuntu 24.04"})
    update = provider.servers.update(plan, server)
    for warning in update.warnings:
        print(f"{YELLOW}{warning.summary}:{RESET} {warning.detail}")

    _step("5. Cancel the server and remove the key")
    provider.servers.delete(server)
    provider.ssh_keys.delete(key)
    print(f"{GREEN}done{RESET}: {len(backend.servers)} server(s), "
          f"{len(backend.ssh_keys)} key(s) left")


if __name__ == "__main__":
    main()
