from mangum import Mangum

from judgment_analyzer.app import create_app

# AWS Lambda entrypoint for API Gateway. Lifespan events are skipped so cold
# starts do not wait on startup hooks; the completion client is created eagerly.
handler = Mangum(create_app(), lifespan="off")
