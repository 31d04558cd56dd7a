"""Property back office: meter readings and utility consumption."""
