from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

NOT_APPLICABLE = -1.0
DEFAULT_RULE_PRIORITY = 0

U16_MAX = 65535


class RequestType(str, Enum):
    HTTP = "http"
    HTTPS = "https"
    H2 = "h2"
    WS = "ws"
    WSS = "wss"


class AccessLogRecord(BaseModel):
    """
    One application load balancer access log entry.

    Field order is the wire order. Timestamps stay opaque strings; the
    processing times use -1 when the load balancer could not dispatch the
    request, and that value is kept as ordinary data.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    request_type: RequestType
    timestamp: str
    elb: str
    client: str
    target: str
    request_processing_time: float
    target_processing_time: float
    response_processing_time: float
    elb_status_code: int = Field(ge=0, le=U16_MAX)
    target_status_code: int = Field(ge=0, le=U16_MAX)
    received_bytes: int = Field(ge=0)
    sent_bytes: int = Field(ge=0)
    request: str = Field(min_length=1)
    user_agent: str
    ssl_cipher: str
    ssl_protocol: str
    target_group_arn: str
    trace_id: str = Field(min_length=1)
    domain_name: str = Field(min_length=1)
    chosen_cert_arn: str = Field(min_length=1)
    matched_rule_priority: int = Field(ge=0, le=U16_MAX)
    request_creation_time: str
    actions_executed: str = Field(min_length=1)
    redirect_url: str = Field(min_length=1)
    error_reason: str = Field(min_length=1)

    @field_validator("request_type", mode="before")
    def lower_request_type(cls, v):
        return v.lower() if isinstance(v, str) else v

    @property
    def is_default_rule(self) -> bool:
        return self.matched_rule_priority == DEFAULT_RULE_PRIORITY

    def to_line(self) -> str:
        """Serialize back into the access log wire format."""
        from .parser import FIELDS

        parts = []
        for spec in FIELDS:
            value = getattr(self, spec.name)
            if isinstance(value, RequestType):
                text = value.value
            elif isinstance(value, float):
                text = repr(value)
            else:
                text = str(value)
            parts.append(f'"{text}"' if spec.quoted else text)
        return " ".join(parts)
