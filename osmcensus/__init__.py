PROJECT_NAME = "OSMCensus"
