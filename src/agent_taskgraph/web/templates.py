"""HTML/CSS/JS for the web dashboard - single page, no build step."""

DASHBOARD_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Agent Taskgraph</title>
<style>
:root {
	--bg: #0d1117;
	--bg-card: #161b22;
	--bg-hover: #1c2128;
	--border: #30363d;
	--text: #c9d1d9;
	--text-dim: #8b949e;
	--text-bright: #f0f6fc;
	--accent: #58a6ff;
	--green: #3fb950;
	--red: #f85149;
	--yellow: #d29922;
	--mono: "SF Mono", "Cascadia Code", "Fira Code", Consolas, monospace;
}
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
	background: var(--bg);
	color: var(--text);
	font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
	line-height: 1.5;
}
.header {
	display: flex;
	align-items: center;
	justify-content: space-between;
	padding: 16px 24px;
	border-bottom: 1px solid var(--border);
	background: var(--bg-card);
}
.header h1 { font-size: 18px; color: var(--text-bright); font-weight: 600; }
.header select {
	background: var(--bg);
	color: var(--text);
	border: 1px solid var(--border);
	border-radius: 4px;
	padding: 4px 8px;
	margin-left: 16px;
}
.sse-status { display: flex; align-items: center; gap: 6px; font-size: 13px; color: var(--text-dim); }
.sse-dot { width: 8px; height: 8px; border-radius: 50%; background: var(--red); transition: background 0.3s; }
.sse-dot.connected { background: var(--green); }
.container { padding: 24px; max-width: 1400px; margin: 0 auto; }
.summary-cards {
	display: grid;
	grid-template-columns: repeat(auto-fit, minmax(160px, 1fr));
	gap: 16px;
	margin-bottom: 24px;
}
.card { background: var(--bg-card); border: 1px solid var(--border); border-radius: 8px; padding: 16px; }
.card-label {
	font-size: 12px;
	text-transform: uppercase;
	letter-spacing: 0.5px;
	color: var(--text-dim);
	margin-bottom: 4px;
}
.card-value { font-size: 28px; font-weight: 600; color: var(--text-bright); font-family: var(--mono); }
.panels { display: grid; grid-template-columns: 1fr 320px; gap: 16px; }
@media (max-width: 900px) {
	.panels { grid-template-columns: 1fr; }
}
.panel { background: var(--bg-card); border: 1px solid var(--border); border-radius: 8px; overflow: hidden; margin-bottom: 16px; }
.panel-header {
	padding: 12px 16px;
	border-bottom: 1px solid var(--border);
	font-size: 14px;
	font-weight: 600;
	color: var(--text-bright);
}
.panel-body { max-height: 600px; overflow-y: auto; }
table { width: 100%; border-collapse: collapse; font-size: 13px; }
th {
	text-align: left;
	padding: 8px 12px;
	border-bottom: 1px solid var(--border);
	color: var(--text-dim);
	font-weight: 500;
	font-size: 11px;
	text-transform: uppercase;
	position: sticky;
	top: 0;
	background: var(--bg-card);
}
td { padding: 6px 12px; border-bottom: 1px solid var(--border); vertical-align: top; }
tr:hover td { background: var(--bg-hover); }
.mono { font-family: var(--mono); font-size: 12px; color: var(--text-dim); }
.status { font-family: var(--mono); font-size: 12px; }
.status-completed { color: var(--green); }
.status-in_progress { color: var(--accent); }
.status-blocked { color: var(--red); }
.status-pending { color: var(--yellow); }
.item { padding: 8px 16px; border-bottom: 1px solid var(--border); font-size: 13px; }
.item .meta { color: var(--text-dim); font-size: 12px; }
.empty { padding: 12px 16px; color: var(--text-dim); font-size: 13px; }
</style>
</head>
<body>
<div class="header">
	<div>
		<h1 style="display:inline">Agent Taskgraph</h1>
		<select id="projectSelect" onchange="selectProject(this.value)"></select>
	</div>
	<div class="sse-status">
		<div class="sse-dot" id="sseDot"></div>
		<span id="sseLabel">Connecting...</span>
	</div>
</div>
<div class="container">
	<div class="summary-cards">
		<div class="card"><div class="card-label">Tasks</div><div class="card-value" id="total">-</div></div>
		<div class="card"><div class="card-label">Pending</div><div class="card-value" id="pending">-</div></div>
		<div class="card"><div class="card-label">In Progress</div><div class="card-value" id="in_progress">-</div></div>
		<div class="card"><div class="card-label">Blocked</div><div class="card-value" id="blocked">-</div></div>
		<div class="card"><div class="card-label">Completed</div><div class="card-value" id="completed">-</div></div>
		<div class="card"><div class="card-label">Completion</div><div class="card-value" id="rate">-</div></div>
	</div>
	<div class="panels">
		<div class="panel">
			<div class="panel-header" id="tasksHeader">Tasks</div>
			<div class="panel-body" id="tasks"></div>
		</div>
		<div>
			<div class="panel">
				<div class="panel-header">Ready to start</div>
				<div class="panel-body" id="ready"></div>
			</div>
			<div class="panel">
				<div class="panel-header">Plan history</div>
				<div class="panel-body" id="plans"></div>
			</div>
		</div>
	</div>
</div>

<script>
let project = null;
let evtSource = null;

function esc(s) {
	const d = document.createElement("div");
	d.textContent = s == null ? "" : String(s);
	return d.innerHTML;
}

async function fetchJson(url) {
	const r = await fetch(url);
	return r.json();
}

function q(path) {
	return project ? path + (path.includes("?") ? "&" : "?") + "project=" + encodeURIComponent(project) : path;
}

async function loadProjects() {
	const projects = await fetchJson("/api/projects");
	const select = document.getElementById("projectSelect");
	if (!project) {
		const current = projects.find(p => p.current) || projects[0];
		project = current ? current.id : null;
	}
	select.innerHTML = projects.map(p =>
		`<option value="${esc(p.id)}" ${p.id === project ? "selected" : ""}>${esc(p.name)}</option>`
	).join("");
}

function selectProject(id) {
	project = id;
	refresh();
}

async function loadSummary() {
	const s = await fetchJson(q("/api/summary"));
	if (s.error) return;
	for (const key of ["pending", "in_progress", "blocked", "completed"]) {
		document.getElementById(key).textContent = s.counts[key];
	}
	document.getElementById("total").textContent = s.total;
	document.getElementById("rate").textContent = s.completion_rate + "%";
	document.getElementById("tasksHeader").textContent =
		`Tasks of ${s.project_name} (plan v${s.plan_version})`;
}

async function loadTasks() {
	const tasks = await fetchJson(q("/api/tasks"));
	const el = document.getElementById("tasks");
	if (tasks.error || !tasks.length) {
		el.innerHTML = '<div class="empty">No tasks</div>';
		return;
	}
	const names = Object.fromEntries(tasks.map(t => [t.id, t.name]));
	el.innerHTML = "<table><tr><th>#</th><th>Task</th><th>Status</th><th>Depends on</th></tr>" +
		tasks.map((t, i) => `<tr>
			<td class="mono">${i + 1}</td>
			<td>${esc(t.name)}<div class="mono">${esc(t.id)}</div></td>
			<td class="status status-${t.status}">${t.status}</td>
			<td>${t.dependencies.map(d => esc(names[d] || d)).join("<br>")}</td>
		</tr>`).join("") + "</table>";
}

async function loadReady() {
	const tasks = await fetchJson(q("/api/tasks/ready"));
	const el = document.getElementById("ready");
	if (tasks.error || !tasks.length) {
		el.innerHTML = '<div class="empty">Nothing ready</div>';
		return;
	}
	el.innerHTML = tasks.map(t =>
		`<div class="item">${esc(t.name)}<div class="meta mono">${esc(t.id)}</div></div>`
	).join("");
}

async function loadPlans() {
	const plans = await fetchJson(q("/api/plans"));
	const el = document.getElementById("plans");
	if (plans.error || !plans.length) {
		el.innerHTML = '<div class="empty">No plans</div>';
		return;
	}
	el.innerHTML = plans.slice().reverse().map(p =>
		`<div class="item">v${p.version} ${esc(p.name)}
			<div class="meta">${p.task_count} tasks, ${p.read_only ? "read-only" : "active"}</div></div>`
	).join("");
}

async function refresh() {
	await loadProjects();
	if (!project) {
		document.getElementById("tasks").innerHTML = '<div class="empty">No projects yet</div>';
		return;
	}
	await Promise.all([loadSummary(), loadTasks(), loadReady(), loadPlans()]);
}

function setSSEStatus(on) {
	document.getElementById("sseDot").classList.toggle("connected", on);
	document.getElementById("sseLabel").textContent = on ? "Live" : "Disconnected";
}

function connectSSE() {
	evtSource = new EventSource("/api/stream");
	evtSource.addEventListener("connected", () => setSSEStatus(true));
	evtSource.addEventListener("update", () => refresh());
	evtSource.onerror = () => {
		setSSEStatus(false);
		if (evtSource.readyState === EventSource.CLOSED) {
			setTimeout(connectSSE, 3000);
		}
	};
}

refresh();
connectSSE();
</script>
</body>
</html>
"""
