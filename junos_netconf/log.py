import logging

logger = logging.getLogger("junos_netconf")
