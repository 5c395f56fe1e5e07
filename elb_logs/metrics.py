from prometheus_client import Counter, start_http_server

m_objects_listed = Counter("elb_logs_objects_listed_total", "Objects returned by the day listing")
m_objects_selected = Counter("elb_logs_objects_selected_total", "Objects inside the selection window")
m_objects_failed = Counter("elb_logs_objects_failed_total", "Objects that failed to fetch or decode")
m_lines_parsed = Counter("elb_logs_lines_parsed_total", "Log lines parsed into records")
m_lines_dropped = Counter("elb_logs_lines_dropped_total", "Log lines that did not match the grammar")


def start_exporter(port: int) -> bool:
    if port <= 0:
        return False
    start_http_server(port)
    return True
