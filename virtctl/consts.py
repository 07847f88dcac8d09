"""Project constants."""

COMMAND_EXPOSE = "expose"

KUBEVIRT_GROUP = "kubevirt.io"
KUBEVIRT_VERSION = "v1"

# Placement hint set on every VMI; it does not carry over when the VMI is rescheduled.
NODE_NAME_LABEL = "kubevirt.io/nodeName"

DEFAULT_NAMESPACE = "default"
