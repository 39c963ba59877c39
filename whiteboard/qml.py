"""QML UI definition for Whiteboard.

The scene only renders state and forwards input; every decision is made by
the ``controller`` (InteractionController), ``boardModel`` and ``viewTransform``
context objects. Pointer positions are passed in canvas coordinates.
The side drawer hosts the optional ``assistant`` tabs and ``documents`` list.
"""

WHITEBOARD_QML = r"""
import QtQuick 2.15
import QtQuick.Controls 2.15
import QtQuick.Layouts 1.15
import QtQuick.Dialogs
ApplicationWindow {
    id: root
    visible: true
    width: 1200
    height: 800
    color: "#10141c"
    title: "Whiteboard"

    property string assistantMessage: ""
    property string documentsMessage: ""
    readonly property var boxPreset: elementPresets.box
    readonly property var notePreset: elementPresets.note

    function canvasPoint(item, x, y) {
        return item.mapToItem(canvas, x, y)
    }

    header: ToolBar {
        RowLayout {
            anchors.fill: parent
            spacing: 8

            Button {
                text: "Add box"
                onClicked: controller.createBox(canvas.width / 2, canvas.height / 2)
            }
            Button {
                text: "Add note"
                onClicked: controller.createNote(canvas.width / 2, canvas.height / 2)
            }
            Button {
                text: controller.connectMode ? "Cancel connect" : "Connect"
                checkable: true
                checked: controller.connectMode
                onClicked: controller.toggleConnectMode()
            }
            Button {
                text: "Clear"
                onClicked: controller.clearCanvas()
            }
            Button {
                text: "Reset view"
                onClicked: viewTransform.reset()
            }
            Button {
                text: "Assistant"
                visible: assistant !== null || documents !== null
                onClicked: sidePanel.visible ? sidePanel.close() : sidePanel.open()
            }
            Label {
                text: controller.statusText
                color: "#9fb3c8"
                Layout.fillWidth: true
            }
            TextField {
                id: promptField
                placeholderText: "Ask the assistant for additions"
                Layout.preferredWidth: 280
                visible: assistant !== null
                onAccepted: recommendButton.clicked()
            }
            Button {
                id: recommendButton
                text: assistant && assistant.busy ? "Thinking..." : "Recommend"
                visible: assistant !== null
                enabled: assistant !== null && !assistant.busy
                onClicked: assistant.requestRecommendation(promptField.text)
            }
            Button {
                text: "Accept"
                visible: boardModel.hasPreview
                onClicked: assistant ? assistant.acceptRecommendation() : boardModel.acceptPreview()
            }
            Button {
                text: "Dismiss"
                visible: boardModel.hasPreview
                onClicked: assistant ? assistant.dismissRecommendation() : boardModel.clearPreview()
            }
        }
    }

    footer: Label {
        text: root.assistantMessage
        visible: text.length > 0
        color: "#f5a97f"
        padding: 6
    }

    Connections {
        target: assistant
        ignoreUnknownSignals: true
        function onRequestFailed(message) { root.assistantMessage = message }
        function onRecommendationReady() { root.assistantMessage = "" }
    }

    Connections {
        target: boardSession
        ignoreUnknownSignals: true
        function onErrorOccurred(message) { root.assistantMessage = message }
    }

    Item {
        id: canvas
        anchors.fill: parent
        clip: true
        focus: true

        Keys.onPressed: function(event) {
            controller.keyPress(event.key)
            if (event.key === Qt.Key_Delete || event.key === Qt.Key_Backspace || event.key === Qt.Key_Escape)
                event.accepted = true
        }
        Keys.onReleased: function(event) {
            if (!event.isAutoRepeat)
                controller.keyRelease(event.key)
        }

        MouseArea {
            id: background
            anchors.fill: parent
            acceptedButtons: Qt.LeftButton | Qt.MiddleButton
            hoverEnabled: false
            onPressed: function(mouse) {
                canvas.forceActiveFocus()
                controller.pressBackground(mouse.x, mouse.y, mouse.button)
            }
            onPositionChanged: function(mouse) { controller.move(mouse.x, mouse.y) }
            onReleased: controller.release()
            onCanceled: controller.leave()
            onDoubleClicked: function(mouse) { controller.createBox(mouse.x, mouse.y) }
            onWheel: function(wheel) {
                controller.wheel(wheel.x, wheel.y, wheel.angleDelta.x / 8, wheel.angleDelta.y / 8,
                                 (wheel.modifiers & Qt.ControlModifier) !== 0)
            }
        }

        // Drawn in canvas coordinates through viewTransform.
        Canvas {
            id: lines
            objectName: "connectionCanvas"
            anchors.fill: parent
            property var items: boardModel.connectionLines
            property var ghosts: boardModel.previewConnections
            onItemsChanged: requestPaint()
            onGhostsChanged: requestPaint()
            onWidthChanged: requestPaint()
            onHeightChanged: requestPaint()

            Connections {
                target: controller
                function onSelectionChanged() { lines.requestPaint() }
            }
            Connections {
                target: viewTransform
                function onChanged() { lines.requestPaint() }
            }

            function drawLine(ctx, line) {
                var s = viewTransform.scale
                ctx.beginPath()
                ctx.moveTo(line.x1 * s + viewTransform.offsetX, line.y1 * s + viewTransform.offsetY)
                ctx.lineTo(line.x2 * s + viewTransform.offsetX, line.y2 * s + viewTransform.offsetY)
                ctx.stroke()
            }

            onPaint: {
                var ctx = getContext("2d")
                ctx.reset()
                ctx.lineWidth = 2 * viewTransform.scale
                for (var i = 0; i < items.length; ++i) {
                    ctx.strokeStyle = items[i].id === controller.selectedConnectionId ? "#f5a97f" : "#7dc4e4"
                    drawLine(ctx, items[i])
                }
                ctx.setLineDash([6, 4])
                ctx.strokeStyle = "#a6da95"
                for (var j = 0; j < ghosts.length; ++j)
                    drawLine(ctx, ghosts[j])
            }
        }

        Item {
            id: world
            x: viewTransform.offsetX
            y: viewTransform.offsetY
            scale: viewTransform.scale
            transformOrigin: Item.TopLeft

            Repeater {
                model: boardModel.connectionLines
                delegate: Rectangle {
                    readonly property real dx: modelData.x2 - modelData.x1
                    readonly property real dy: modelData.y2 - modelData.y1
                    x: modelData.x1
                    y: modelData.y1 - 5
                    width: Math.sqrt(dx * dx + dy * dy)
                    height: 10
                    color: "transparent"
                    transformOrigin: Item.Left
                    rotation: Math.atan2(dy, dx) * 180 / Math.PI
                    MouseArea {
                        anchors.fill: parent
                        onPressed: controller.pressConnection(modelData.id)
                    }
                }
            }

            Repeater {
                model: boardModel
                delegate: Rectangle {
                    x: model.x
                    y: model.y
                    width: model.width
                    height: model.height
                    radius: 8
                    color: "#1e2433"
                    border.width: 2
                    border.color: controller.connectFrom === model.boxId ? "#a6da95"
                                  : controller.selectedBoxId === model.boxId ? "#f5a97f" : "#5b6078"

                    Text {
                        anchors.fill: parent
                        anchors.margins: 8
                        visible: controller.editingBoxId !== model.boxId
                        text: model.text.length > 0 ? model.text : root.boxPreset.placeholder
                        color: model.text.length > 0 ? "#cad3f5" : "#6e738d"
                        wrapMode: Text.Wrap
                        horizontalAlignment: Text.AlignHCenter
                        verticalAlignment: Text.AlignVCenter
                    }

                    MouseArea {
                        anchors.fill: parent
                        visible: controller.editingBoxId !== model.boxId
                        acceptedButtons: Qt.LeftButton | Qt.MiddleButton
                        onPressed: function(mouse) {
                            canvas.forceActiveFocus()
                            var p = root.canvasPoint(parent, mouse.x, mouse.y)
                            controller.pressBox(model.boxId, p.x, p.y, mouse.button)
                        }
                        onPositionChanged: function(mouse) {
                            var p = root.canvasPoint(parent, mouse.x, mouse.y)
                            controller.move(p.x, p.y)
                        }
                        onReleased: controller.release()
                        onCanceled: controller.leave()
                        onDoubleClicked: controller.doubleClickBox(model.boxId)
                    }

                    TextArea {
                        anchors.fill: parent
                        visible: controller.editingBoxId === model.boxId
                        text: controller.editText
                        wrapMode: TextEdit.Wrap
                        onVisibleChanged: if (visible) forceActiveFocus()
                        onTextChanged: if (visible) controller.setEditText(text)
                        onActiveFocusChanged: if (!activeFocus && visible) controller.commitEdit()
                        Keys.onPressed: function(event) {
                            if (event.key === Qt.Key_Escape || event.key === Qt.Key_Return || event.key === Qt.Key_Enter) {
                                controller.keyPress(event.key)
                                event.accepted = true
                            }
                        }
                    }
                }
            }

            Repeater {
                model: boardModel.notes
                delegate: Rectangle {
                    x: modelData.x
                    y: modelData.y
                    width: root.notePreset.width
                    height: root.notePreset.height
                    color: "#eed49f"
                    border.width: controller.selectedNoteId === modelData.id ? 2 : 0
                    border.color: "#f5a97f"

                    Text {
                        anchors.fill: parent
                        anchors.margins: 6
                        visible: controller.editingNoteId !== modelData.id
                        text: modelData.content.length > 0 ? modelData.content : root.notePreset.placeholder
                        color: "#24273a"
                        wrapMode: Text.Wrap
                    }

                    MouseArea {
                        anchors.fill: parent
                        visible: controller.editingNoteId !== modelData.id
                        onPressed: function(mouse) {
                            canvas.forceActiveFocus()
                            var p = root.canvasPoint(parent, mouse.x, mouse.y)
                            controller.pressNote(modelData.id, p.x, p.y, mouse.button)
                        }
                        onPositionChanged: function(mouse) {
                            var p = root.canvasPoint(parent, mouse.x, mouse.y)
                            controller.move(p.x, p.y)
                        }
                        onReleased: controller.release()
                        onCanceled: controller.leave()
                        onDoubleClicked: controller.doubleClickNote(modelData.id)
                    }

                    TextArea {
                        anchors.fill: parent
                        visible: controller.editingNoteId === modelData.id
                        text: controller.editText
                        wrapMode: TextEdit.Wrap
                        onVisibleChanged: if (visible) forceActiveFocus()
                        onTextChanged: if (visible) controller.setEditText(text)
                        onActiveFocusChanged: if (!activeFocus && visible) controller.commitEdit()
                        Keys.onPressed: function(event) {
                            if (event.key === Qt.Key_Escape) {
                                controller.keyPress(event.key)
                                event.accepted = true
                            }
                        }
                    }
                }
            }

            Repeater {
                model: boardModel.previewBoxes
                delegate: Rectangle {
                    x: modelData.x
                    y: modelData.y
                    width: root.boxPreset.width
                    height: root.boxPreset.height
                    radius: 8
                    color: "transparent"
                    opacity: 0.7
                    border.width: 2
                    border.color: "#a6da95"
                    Text {
                        anchors.centerIn: parent
                        text: modelData.text
                        color: "#a6da95"
                    }
                }
            }

            Repeater {
                model: boardModel.previewNotes
                delegate: Rectangle {
                    x: modelData.x
                    y: modelData.y
                    width: root.notePreset.width
                    height: root.notePreset.height
                    color: "transparent"
                    opacity: 0.7
                    border.width: 2
                    border.color: "#eed49f"
                    Text {
                        anchors.fill: parent
                        anchors.margins: 6
                        text: modelData.content
                        color: "#eed49f"
                        wrapMode: Text.Wrap
                    }
                }
            }
        }

        BusyIndicator {
            anchors.centerIn: parent
            running: boardSession !== null && boardSession.isLoading
            visible: running
        }
    }

    Connections {
        target: documents
        ignoreUnknownSignals: true
        function onErrorOccurred(message) { root.documentsMessage = message }
        function onDocumentsChanged() { root.documentsMessage = "" }
    }

    FileDialog {
        id: uploadDialog
        title: "Upload document"
        onAccepted: documents.upload(selectedFile.toString())
    }

    Drawer {
        id: sidePanel
        edge: Qt.RightEdge
        width: 360
        height: root.height
        modal: false
        dim: false

        ColumnLayout {
            anchors.fill: parent
            anchors.margins: 10
            spacing: 8

            TabBar {
                id: modeTabs
                visible: assistant !== null
                Layout.fillWidth: true
                readonly property string mode: assistant !== null ? assistant.modes[currentIndex] : ""
                Repeater {
                    model: assistant !== null ? assistant.modes : []
                    delegate: TabButton { text: modelData }
                }
            }

            TextField {
                id: questionField
                visible: assistant !== null && modeTabs.mode === "ask"
                placeholderText: "Question about this board"
                Layout.fillWidth: true
                onAccepted: runButton.clicked()
            }

            Button {
                id: runButton
                visible: assistant !== null
                text: assistant && assistant.busy ? "Thinking..." : "Run"
                enabled: assistant !== null && !assistant.busy
                onClicked: assistant.requestAnalysis(modeTabs.mode, questionField.text)
            }

            Label {
                visible: text.length > 0
                text: assistant !== null ? (assistant.errors[modeTabs.mode] || "") : ""
                color: "#f5a97f"
                Layout.fillWidth: true
                wrapMode: Text.Wrap
            }

            ScrollView {
                visible: assistant !== null
                Layout.fillWidth: true
                Layout.fillHeight: true
                TextArea {
                    readOnly: true
                    wrapMode: TextEdit.Wrap
                    text: assistant !== null ? (assistant.answers[modeTabs.mode] || "") : ""
                }
            }

            RowLayout {
                visible: documents !== null
                Layout.fillWidth: true
                Label {
                    text: "Documents"
                    font.bold: true
                    Layout.fillWidth: true
                }
                Button {
                    text: "Upload"
                    onClicked: uploadDialog.open()
                }
            }

            Label {
                visible: text.length > 0
                text: root.documentsMessage
                color: "#f5a97f"
                Layout.fillWidth: true
                wrapMode: Text.Wrap
            }

            ListView {
                visible: documents !== null
                Layout.fillWidth: true
                Layout.preferredHeight: 200
                clip: true
                model: documents !== null ? documents.documents : []
                delegate: RowLayout {
                    width: ListView.view.width
                    Label {
                        text: modelData.filename
                        elide: Text.ElideMiddle
                        Layout.fillWidth: true
                    }
                    Button {
                        text: "Remove"
                        onClicked: documents.remove(modelData.id)
                    }
                }
            }
        }
    }
}
"""

__all__ = ["WHITEBOARD_QML"]
