"""Traditional Chinese (zh-TW) response templates."""

TEMPLATES: dict[str, str] = {
	# -- list items ---------------------------------------------------------
	"item.project": "- **{name}** `{id}`（計畫 v{version}，{task_count} 個任務）{current}",
	"item.project_current": " <- 目前專案",
	"item.plan": "- v{version} **{name}** `{id}`：{task_count} 個任務，{state}",
	"item.plan_active": "使用中",
	"item.plan_read_only": "唯讀",
	"item.task": "{index}. **{name}** `{id}` [{status}]{dependencies}",
	"item.task_dependencies": "（依賴：{dependencies}）",
	"item.diff": "- **{name}** `{id}` {old_status} -> {new_status}",
	"item.bulk_ok": "- `{id}`：{status}",
	"item.bulk_failed": "- `{id}`：失敗（{kind}）{detail}",
	"item.file": "- `{path}`（{kind}）{lines} {description}",
	"item.note": "- {note}",
	"item.none": "_無_",

	# -- projects -----------------------------------------------------------
	"create_project.success": (
		"## 專案已建立\n\n"
		"**{name}**（`{id}`）\n\n"
		"- 檔案安全名稱：`{sanitized_name}`\n"
		"- 使用中計畫：v1 `{plan_id}`\n"
		"{description}\n\n"
		"此專案已設為目前專案。請使用 `plan_tasks` 規劃任務，或以 `add_task` 逐一新增。"
	),
	"list_projects.success": "## 專案列表（{count}）\n\n{projects}",
	"list_projects.empty": "尚無專案。請使用 `create_project` 建立專案。",
	"switch_project.success": (
		"## 已切換專案\n\n"
		"目前專案為 **{name}**（`{id}`），計畫 v{version}，共 {task_count} 個任務。"
	),
	"delete_project.success": (
		"## 專案已刪除\n\n"
		"**{name}**（`{id}`）及其 {plans} 個計畫、{tasks} 個任務已刪除。"
	),
	"get_project_info.success": (
		"## {name}\n\n"
		"- ID：`{id}`\n"
		"- 描述：{description}\n"
		"- 使用中計畫：v{version} `{plan_id}`\n"
		"- 歷史計畫數：{history_count}\n"
		"- 建立時間：{created_at}\n\n"
		"### 進度\n\n"
		"共 {total} 個任務，完成率 {completion_rate}%\n\n"
		"- 待處理：{pending}\n"
		"- 進行中：{in_progress}\n"
		"- 已阻擋：{blocked}\n"
		"- 已完成：{completed}"
	),

	# -- plans --------------------------------------------------------------
	"create_plan_version.success": (
		"## 計畫 v{version} 已建立\n\n"
		"專案 **{project}** 現在使用計畫 `{plan_id}`，共 {task_count} 個任務。"
		"計畫 v{previous_version} 以唯讀方式保留於歷史中。"
	),
	"list_plans.success": "## {project} 的計畫（{count}）\n\n{plans}",
	"get_plan_info.success": (
		"## 計畫 v{version}：{name}\n\n"
		"- ID：`{id}`\n"
		"- 狀態：{state}\n"
		"- 衍生自：{parent}\n"
		"- 建立時間：{created_at}\n\n"
		"### 任務（{task_count}）\n\n"
		"{tasks}"
	),
	"rollback_plan.success": (
		"## 已回復\n\n"
		"專案 **{project}** 現在使用計畫 v{version}，由 v{source_version} 回復，共 {task_count} 個任務。"
		"任務狀態維持不變。已略過 {skipped} 個已刪除的任務。"
	),
	"delete_plan.success": (
		"## 計畫已刪除\n\n"
		"計畫 v{version}（`{id}`）已刪除；{orphaned} 個未被其他計畫使用的任務一併移除。"
	),
	"diff_plans.success": (
		"## v{older_version} 到 v{newer_version} 的變更\n\n"
		"### 新增（{added_count}）\n\n{added}\n\n"
		"### 移除（{removed_count}）\n\n{removed}\n\n"
		"### 狀態變更（{changed_count}）\n\n{changed}"
	),
	"diff_plans.empty": "計畫 v{older_version} 與 v{newer_version} 沒有差異。",
	"clear_all_tasks.success": (
		"## 任務已清除\n\n"
		"**{project}** 的 {cleared} 個任務已移入歷史計畫 v{backup_version}。"
		"專案現在使用空白計畫 v{version}。"
	),

	# -- tasks --------------------------------------------------------------
	"add_task.success": (
		"## 任務已新增\n\n"
		"**{name}**（`{id}`）已加入計畫 v{version}。\n\n"
		"依賴任務：{dependencies}"
	),
	"update_task.success": "## 任務已更新\n\n**{name}**（`{id}`）：已變更 {fields}。",
	"annotate_task.success": "已在 **{name}**（`{id}`）記錄備註；共 {note_count} 則備註。",
	"delete_task.success": (
		"## 任務已刪除\n\n"
		"已從計畫移除 {removed_count} 個任務：\n\n{removed}"
	),
	"list_tasks.success": (
		"## {project} 的任務（計畫 v{version}，{status_filter}）\n\n"
		"依依賴順序列出 {count} 個任務：\n\n{tasks}"
	),
	"list_tasks.empty": "**{project}** 的計畫 v{version} 中沒有 {status_filter} 任務。",
	"query_task.success": (
		"## 「{query}」的搜尋結果\n\n"
		"共 {total} 筆，第 {page} / {total_pages} 頁：\n\n{tasks}"
	),
	"query_task.empty": "沒有符合「{query}」的任務。",
	"get_task_detail.success": (
		"## {name}\n\n"
		"- ID：`{id}`\n"
		"- 狀態：{status}\n"
		"- 依賴任務：{dependencies}\n"
		"- 建立時間：{created_at}\n"
		"- 更新時間：{updated_at}\n"
		"- 完成時間：{completed_at}\n\n"
		"### 描述\n\n{description}\n\n"
		"### 備註\n\n{notes}\n\n"
		"### 實作指引\n\n{implementation_guide}\n\n"
		"### 驗證標準\n\n{verification_criteria}\n\n"
		"### 相關檔案\n\n{related_files}\n\n"
		"### 完成摘要\n\n{summary}\n\n"
		"### 稽核紀錄\n\n{audit_notes}"
	),
	"ready_tasks.success": "## 可開始的任務（{count}）\n\n{tasks}",
	"ready_tasks.empty": "目前沒有可開始的任務：所有待處理任務仍在等待未完成的依賴任務。",
	"plan_tasks.success": (
		"## 任務規劃完成\n\n"
		"計畫 v{version}（{mode}）：新增 {created_count} 個、更新 {updated_count} 個、移除 {removed_count} 個。\n\n"
		"### 新增\n\n{created}\n\n"
		"### 更新\n\n{updated}\n\n"
		"### 未變更（已完成）\n\n{unchanged}"
	),
	"plan_tasks.mode_append": "已附加新任務",
	"plan_tasks.mode_overwrite": "未完成的任務已被取代，已完成的任務保留",
	"plan_tasks.mode_selective": "已更新名稱相符的任務",
	"plan_tasks.mode_clear_all": "先前的計畫已移至歷史紀錄",
	"split_tasks.success": (
		"## 任務已拆分\n\n"
		"**{parent_name}**（`{parent_id}`）已拆分為 {count} 個子任務（{mode}）：\n\n{subtasks}"
	),
	"split_tasks.mode_keep": "父任務等待所有子任務完成",
	"split_tasks.mode_replace": "父任務已被取代並標記為已汰換",
	"execute_task.success": (
		"## 執行任務：{name}\n\n"
		"任務 `{id}` 已進入進行中狀態。\n\n"
		"### 描述\n\n{description}\n\n"
		"### 實作指引\n\n{implementation_guide}\n\n"
		"### 驗證標準\n\n{verification_criteria}\n\n"
		"### 相關檔案\n\n{related_files}\n\n"
		"完成後請以分數與摘要呼叫 `verify_task`。"
	),
	"block_task.success": "任務 **{name}**（`{id}`）已阻擋：{reason}",
	"unblock_task.success": "任務 **{name}**（`{id}`）已恢復為待處理。",
	"complete_task.success": (
		"## 任務已完成\n\n"
		"**{name}**（`{id}`）已完成。\n\n"
		"摘要：{summary}"
	),
	"verify_task.success": (
		"## 驗證通過\n\n"
		"**{name}**（`{id}`）得分 {score}（門檻 {threshold}），已標記為完成。\n\n"
		"摘要：{summary}"
	),
	"verify_task.retry": (
		"## 驗證未通過\n\n"
		"**{name}**（`{id}`）得分 {score}，低於門檻 {threshold}。"
		"回饋已記錄，請修正問題後再次驗證。\n\n"
		"回饋：{summary}"
	),
	"update_status_bulk.success": (
		"## 批次更新狀態為 {status}\n\n"
		"{total} 個任務中已更新 {ok_count} 個：\n\n{results}"
	),
	"task_order.success": "## 執行順序（{count}）\n\n{tasks}",

	# -- errors -------------------------------------------------------------
	"error": "**錯誤（{kind}）**：{detail}",
	"error.ValidationError": "**輸入無效**：{detail}",
	"error.UnknownDependency": "**未知的依賴任務**：{detail}\n\n依賴任務必須屬於同一計畫：{ids}",
	"error.CycleDetected": "**依賴循環**：此變更會形成循環 {ids}。未做任何變更。",
	"error.HasDependents": (
		"**任務仍有依賴者**：{detail}\n\n"
		"可使用 cascade 移除依賴關係，或使用 delete_dependents 一併刪除依賴者。"
	),
	"error.InvalidTransition": "**目前狀態不允許此操作**：{detail}",
	"error.DependenciesUnmet": "**依賴任務尚未完成**：請先完成這些任務：{ids}",
	"error.ProjectNotFound": "**找不到專案**：{detail}\n\n您是否要找：{suggestions}",
	"error.PlanNotFound": "**找不到計畫**：{detail}",
	"error.TaskNotFound": "**找不到任務**：{detail}",
	"error.DuplicateName": "**名稱已被使用**：{detail}。請改用其他名稱，或切換至現有專案。",
	"error.StorageFailure": "**儲存失敗**：{detail}。未儲存任何變更。",
	"error.PlanReadOnly": "**計畫為唯讀**：{detail}",
}
