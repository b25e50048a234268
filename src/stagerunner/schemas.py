from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidEvent
from .model import ArtifactLocation, Job, ParameterSet

# -------------------- CodePipeline job event --------------------
# Only the fields this stage reads; everything else in the event is ignored.


class S3Location(BaseModel):
    bucketName: str
    objectKey: str


class ArtifactLocationModel(BaseModel):
    type: Optional[str] = None
    s3Location: Optional[S3Location] = None


class InputArtifact(BaseModel):
    name: Optional[str] = None
    location: ArtifactLocationModel


class Configuration(BaseModel):
    UserParameters: str = ""


class ActionConfiguration(BaseModel):
    configuration: Configuration = Field(default_factory=Configuration)


class JobData(BaseModel):
    actionConfiguration: ActionConfiguration = Field(default_factory=ActionConfiguration)
    inputArtifacts: list[InputArtifact] = Field(default_factory=list)


class CodePipelineJob(BaseModel):
    id: str
    data: JobData = Field(default_factory=JobData)


class CodePipelineEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job: CodePipelineJob = Field(alias="CodePipeline.job")

    def to_job(self, invocation_context: Optional[str] = None) -> Job:
        data = self.job.data
        artifact = None
        if data.inputArtifacts and data.inputArtifacts[0].location.s3Location:
            s3 = data.inputArtifacts[0].location.s3Location
            artifact = ArtifactLocation(bucket=s3.bucketName, key=s3.objectKey)

        return Job(
            job_id=self.job.id,
            parameters=ParameterSet.from_query(data.actionConfiguration.configuration.UserParameters),
            input_artifact=artifact,
            invocation_context=invocation_context,
        )


def parse_event(event: Any, invocation_context: Optional[str] = None) -> Job:
    """
    Validate a CodePipeline invocation event and build the Job.

    Raises:
        InvalidEvent: the event is not a CodePipeline job event
    """
    try:
        parsed = CodePipelineEvent.model_validate(event)
    except ValidationError as e:
        raise InvalidEvent(
            "Event is not a CodePipeline job event",
            errors=e.error_count(),
        ) from e
    return parsed.to_job(invocation_context)
