"""Namespaces, label keys and other fixed values of the CloudEye (CES) domain."""

# Compute
NAMESPACE_ECS = "SYS.ECS"
NAMESPACE_AGT = "AGT.ECS"
NAMESPACE_BMS = "SERVICE.BMS"
NAMESPACE_AS = "SYS.AS"

# Storage
NAMESPACE_EVS = "SYS.EVS"
NAMESPACE_OBS = "SYS.OBS"
NAMESPACE_SFS = "SYS.SFS"
NAMESPACE_EFS = "SYS.EFS"
NAMESPACE_CBR = "SYS.CBR"

# Network
NAMESPACE_VPC = "SYS.VPC"
NAMESPACE_ELB = "SYS.ELB"
NAMESPACE_DC = "SYS.DCAAS"
NAMESPACE_NAT = "SYS.NAT"
NAMESPACE_ER = "SYS.ER"
NAMESPACE_VPN = "SYS.VPN"

# Database
NAMESPACE_RDS = "SYS.RDS"
NAMESPACE_DDS = "SYS.DDS"
NAMESPACE_NOSQL = "SYS.NoSQL"
NAMESPACE_GAUSSDB = "SYS.GAUSSDB"
NAMESPACE_GAUSSDBV5 = "SYS.GAUSSDBV5"

# Security
NAMESPACE_WAF = "SYS.WAF"
NAMESPACE_CFW = "SYS.CFW"

# Application
NAMESPACE_DMS = "SYS.DMS"
NAMESPACE_DCS = "SYS.DCS"
NAMESPACE_APIC = "SYS.APIC"

# Data analysis
NAMESPACE_DWS = "SYS.DWS"
NAMESPACE_ES = "SYS.ES"
NAMESPACE_DAYU = "SYS.DAYU"

ALL_NAMESPACES = (
    NAMESPACE_ECS,
    NAMESPACE_AGT,
    NAMESPACE_BMS,
    NAMESPACE_AS,
    NAMESPACE_EVS,
    NAMESPACE_OBS,
    NAMESPACE_SFS,
    NAMESPACE_EFS,
    NAMESPACE_CBR,
    NAMESPACE_VPC,
    NAMESPACE_ELB,
    NAMESPACE_DC,
    NAMESPACE_NAT,
    NAMESPACE_ER,
    NAMESPACE_VPN,
    NAMESPACE_RDS,
    NAMESPACE_DDS,
    NAMESPACE_NOSQL,
    NAMESPACE_GAUSSDB,
    NAMESPACE_GAUSSDBV5,
    NAMESPACE_WAF,
    NAMESPACE_CFW,
    NAMESPACE_DMS,
    NAMESPACE_DCS,
    NAMESPACE_APIC,
    NAMESPACE_DWS,
    NAMESPACE_ES,
    NAMESPACE_DAYU,
)

DEFAULT_NAMESPACES = "SYS.ECS,SYS.EVS,SYS.RDS,SYS.ELB"

# Label keys
LABEL_NAMESPACE = "namespace"
LABEL_RESOURCE_ID = "resource_id"
LABEL_RESOURCE_NAME = "resource_name"
LABEL_PROJECT_ID = "project_id"
LABEL_PROJECT_NAME = "project_name"
LABEL_DOMAIN_NAME = "domain_name"
LABEL_UNIT = "unit"
LABEL_OPERATION = "operation"
LABEL_SCOPE = "scope"
LABEL_DISK_NAME = "disk_name"
LABEL_BUCKET_NAME = "bucket_name"
LABEL_LOCATION = "location"
TAG_LABEL_PREFIX = "tag_"

CONSTANT_LABELS = (LABEL_RESOURCE_ID, LABEL_RESOURCE_NAME, LABEL_UNIT)

# Dimension keys that identify the tenant rather than the measured resource
META_DIMENSION_KEYS = frozenset({"tenant_id", "project_id", "domain_id", "user_id"})
DIMENSION_BUCKET_NAME = "bucket_name"
DIMENSION_API_NAME = "api_name"

# Special resource ids
RESOURCE_ID_TOTAL = "total"
RESOURCE_ID_UNKNOWN = "unknown"

AGGREGATION_AVERAGE = "average"
DEVICE_PATH_PREFIX = "/dev/"

# Toggle keys accepted by EXPORT_RMS_LABELS
RMS_LABEL_TAGS = "tags"
RMS_LABEL_TOGGLES = (LABEL_RESOURCE_NAME, LABEL_PROJECT_ID, LABEL_PROJECT_NAME, LABEL_DOMAIN_NAME, RMS_LABEL_TAGS)

# Metric name prefixes that duplicate another series of the same namespace
DUPLICATE_METRIC_PREFIXES = {
    NAMESPACE_AGT: ("id_",),
}

OBS_OPERATIONS = frozenset(
    {
        "HEAD_OBJECT",
        "PUT_OBJECT",
        "DELETE_OBJECT",
        "GET_OBJECT",
        "PUT_PART",
        "POST_UPLOAD_INIT",
        "POST_UPLOAD_COMPLETE",
        "LIST_OBJECTS",
        "DELETE_OBJECTS",
        "COPY_OBJECT",
        "HEAD_BUCKET",
        "LIST_BUCKET_OBJECTS",
        "LIST_BUCKET_UPLOADS",
        "GET_BUCKET_LOCATION",
        "GET_BUCKET_POLICY",
        "PUT_BUCKET_POLICY",
        "DELETE_BUCKET_POLICY",
        "GET_BUCKET_ACL",
        "PUT_BUCKET_ACL",
    }
)

# HTTP statuses the remote APIs use for transient failures
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Page sizes used by the inventory and block-storage listings
RMS_PAGE_LIMIT = 200
EVS_PAGE_LIMIT = 1000
